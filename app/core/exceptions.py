from typing import Any, Optional

import httpx


class ExternalServiceError(Exception):
    """Raised when a call to JIRA or Zephyr does not succeed."""

    def __init__(
        self,
        service: str,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.service = service
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def error_payload(self) -> Any:
        """What gets echoed back to the webhook caller."""
        return self.payload if self.payload is not None else self.message

    @classmethod
    def from_response(cls, service: str, action: str, response: httpx.Response) -> "ExternalServiceError":
        try:
            payload = response.json()
        except ValueError:
            payload = response.text or None
        return cls(
            service=service,
            message=f"{action} failed with status {response.status_code}",
            status_code=response.status_code,
            payload=payload,
        )

    @classmethod
    def unexpected_body(cls, service: str, action: str, response: httpx.Response) -> "ExternalServiceError":
        """A 2xx response whose body is not what the call expects."""
        return cls(
            service=service,
            message=f"{action} returned an unexpected response body",
            status_code=response.status_code,
            payload=response.text or None,
        )


class ServiceNotConfiguredError(ExternalServiceError):
    """Base URL or credentials for an external service are missing."""


class SigningError(ExternalServiceError):
    """A Zephyr request could not be signed."""
