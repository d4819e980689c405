"""
Zephyr Squad Cloud (ZAPI) request signing.

Every ZAPI call carries a short-lived JWT whose ``qsh`` claim is the SHA-256 of
the canonical request ``METHOD&PATH&QUERY``. The gateway recomputes that string
from the request it receives, so the token and the outgoing URL are both built
from the same ``RequestDescriptor``.
"""

import hashlib
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple, Union
from urllib.parse import quote

import jwt
import structlog

from app.core.exceptions import SigningError

logger = structlog.get_logger()

JWT_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL_SECONDS = 60

# RFC 3986 unreserved characters plus the sub-delims !*'() are left as-is
_UNRESERVED = "-_.!~*'()"

QueryParams = Union[Mapping[str, object], Iterable[Tuple[str, object]], None]


def percent_encode(value: object) -> str:
    return quote(str(value), safe=_UNRESERVED)


@dataclass(frozen=True)
class RequestDescriptor:
    """Method, path and query of one outgoing request."""

    method: str
    path: str
    query: Tuple[Tuple[str, str], ...] = field(default=())

    @classmethod
    def build(cls, method: str, path: str, query: QueryParams = None) -> "RequestDescriptor":
        if query is None:
            pairs = ()
        elif isinstance(query, Mapping):
            pairs = tuple((str(k), str(v)) for k, v in query.items())
        else:
            pairs = tuple((str(k), str(v)) for k, v in query)
        return cls(method=method.upper(), path=path, query=pairs)

    @property
    def canonical_path(self) -> str:
        return self.path.rstrip("/")

    @property
    def canonical_query(self) -> str:
        # Stable sort: keys compare by code point, repeated keys keep their order
        ordered = sorted(self.query, key=lambda pair: pair[0])
        return "&".join(f"{percent_encode(k)}={percent_encode(v)}" for k, v in ordered)

    def canonical_string(self) -> str:
        return f"{self.method.upper()}&{self.canonical_path}&{self.canonical_query}"

    def url(self, base_url: str) -> str:
        """Absolute URL to send on the wire, matching the canonical form exactly."""
        url = f"{base_url.rstrip('/')}{self.canonical_path}"
        query = self.canonical_query
        return f"{url}?{query}" if query else url


def query_string_hash(descriptor: RequestDescriptor) -> str:
    return hashlib.sha256(descriptor.canonical_string().encode("utf-8")).hexdigest()


class ZephyrJwtSigner:
    """Issues per-request JWTs for the ZAPI gateway."""

    def __init__(
        self,
        access_key: Optional[str],
        secret_key: Optional[str],
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.access_key = access_key
        self.secret_key = secret_key
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def is_configured(self) -> bool:
        return bool(self.access_key and self.secret_key)

    def claims(self, descriptor: RequestDescriptor) -> Dict[str, object]:
        issued_at = int(self._clock())
        return {
            "iss": self.access_key,
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
            "qsh": query_string_hash(descriptor),
        }

    def sign(self, descriptor: RequestDescriptor) -> str:
        if not self.is_configured():
            raise SigningError(
                service="zephyr",
                message="Missing ZEPHYR_ACCESS_KEY or ZEPHYR_SECRET_KEY",
            )

        claims = self.claims(descriptor)
        logger.debug(
            "Signing Zephyr request",
            canonical=descriptor.canonical_string(),
            qsh=claims["qsh"],
        )
        token = jwt.encode(claims, self.secret_key, algorithm=JWT_ALGORITHM)
        return token if isinstance(token, str) else token.decode("utf-8")

    def auth_headers(self, descriptor: RequestDescriptor) -> Dict[str, str]:
        return {
            "Authorization": f"JWT {self.sign(descriptor)}",
            "zapiAccessKey": self.access_key,
        }
