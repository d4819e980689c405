import httpx
from typing import Any, Dict, Optional
import structlog
from app.repositories.interfaces.zephyr_service import IZephyrService
from app.models.zephyr import TestStep
from app.core.exceptions import ExternalServiceError, ServiceNotConfiguredError
from app.core.zephyr_auth import RequestDescriptor, ZephyrJwtSigner
from app.config.settings import Settings

logger = structlog.get_logger()

TEST_STEP_PATH = "/connect/public/rest/api/1.0/teststep/{issue_id}"


class ZephyrSquadService(IZephyrService):
    """Zephyr Squad Cloud implementation, reached through the ZAPI JWT gateway"""

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient,
        signer: Optional[ZephyrJwtSigner] = None,
    ):
        self.base_url = (settings.zephyr_base_url or "").rstrip("/")
        self.signer = signer or ZephyrJwtSigner(
            access_key=settings.zephyr_access_key,
            secret_key=settings.zephyr_secret_key,
            ttl_seconds=settings.zephyr_token_ttl_seconds,
        )
        self.client = client

    async def _send(self, descriptor: RequestDescriptor, action: str, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        if not self.base_url:
            raise ServiceNotConfiguredError(service="zephyr", message="Missing ZEPHYR_BASE_URL")

        # Token and URL come from the same descriptor so the gateway's qsh check matches
        headers = self.signer.auth_headers(descriptor)
        headers["Content-Type"] = "application/json"

        try:
            response = await self.client.request(
                descriptor.method,
                descriptor.url(self.base_url),
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error(f"{action} failed", path=descriptor.canonical_path, error=str(e))
            raise ExternalServiceError(service="zephyr", message=f"{action} failed: {e}") from e

        if response.is_success:
            return response

        logger.error(
            f"{action} failed",
            path=descriptor.canonical_path,
            status_code=response.status_code,
            response=response.text,
        )
        raise ExternalServiceError.from_response("zephyr", action, response)

    async def add_test_step(self, issue_id: str, project_id: str, step: TestStep) -> Dict[str, Any]:
        """Add one step to a test issue"""
        descriptor = RequestDescriptor.build(
            "POST",
            TEST_STEP_PATH.format(issue_id=issue_id),
            {"projectId": project_id},
        )
        response = await self._send(
            descriptor,
            "Add Zephyr test step",
            json={"step": step.step, "data": step.data, "result": step.result},
        )
        try:
            return response.json()
        except ValueError:
            return {}
