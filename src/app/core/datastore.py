"""HTTP client for the hosted data store (PostgREST RPC/REST + auth).

Every call carries the caller's bearer token, so row-level security and the
stored procedures run as that identity. The client grants no privilege of its
own.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Self

import httpx

from src.app.core.logging import get_logger

logger = get_logger(__name__)

TRANSPORT_ERROR_CODE = "transport_error"


@dataclass(eq=False)
class RpcError(Exception):
    """Error reported by the data store, or a failure to reach it."""

    message: str
    code: str | None = None
    details: str | None = None
    hint: str | None = None
    status: int | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @classmethod
    def from_response(cls, response: httpx.Response) -> Self:
        """Build from a PostgREST / GoTrue error body."""
        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            text = response.text.strip() if response.text else ""
            return cls(message=text or f"HTTP {response.status_code}", status=response.status_code)

        message = (
            body.get("message")
            or body.get("msg")
            or body.get("error_description")
            or body.get("error")
            or f"HTTP {response.status_code}"
        )
        code = body.get("code") if body.get("code") is not None else body.get("error_code")
        return cls(
            message=str(message),
            code=str(code) if code is not None else None,
            details=body.get("details") if isinstance(body.get("details"), str) else None,
            hint=body.get("hint") if isinstance(body.get("hint"), str) else None,
            status=response.status_code,
        )


class RpcErrorKind(str, Enum):
    """How an external procedure failure should be treated."""

    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    GONE = "gone"
    UNDEFINED_RELATION = "undefined_relation"
    OTHER = "other"


# Reason codes procedures put in HINT
_HINT_KINDS = {
    "not_authenticated": RpcErrorKind.UNAUTHENTICATED,
    "forbidden": RpcErrorKind.FORBIDDEN,
    "not_admin": RpcErrorKind.FORBIDDEN,
    "invite_invalid": RpcErrorKind.GONE,
    "invite_expired": RpcErrorKind.GONE,
    "invite_used": RpcErrorKind.GONE,
    "invite_revoked": RpcErrorKind.GONE,
}

# SQLSTATE / PostgREST codes
_CODE_KINDS = {
    "28000": RpcErrorKind.UNAUTHENTICATED,  # invalid_authorization_specification
    "PGRST301": RpcErrorKind.UNAUTHENTICATED,  # JWT invalid or expired
    "PGRST302": RpcErrorKind.UNAUTHENTICATED,  # anonymous access disabled
    "42501": RpcErrorKind.FORBIDDEN,  # insufficient_privilege
    "P0002": RpcErrorKind.GONE,  # no_data_found
    "42P01": RpcErrorKind.UNDEFINED_RELATION,  # undefined_table
    "PGRST205": RpcErrorKind.UNDEFINED_RELATION,  # table not in schema cache
}

# Legacy procedures only return free text; matched last.
_LEGACY_PATTERNS: list[tuple[re.Pattern[str], RpcErrorKind]] = [
    (re.compile(r"not_authenticated|not authenticated", re.IGNORECASE), RpcErrorKind.UNAUTHENTICATED),
    (
        re.compile(r"row level security|permission denied|not authorized", re.IGNORECASE),
        RpcErrorKind.FORBIDDEN,
    ),
    (re.compile(r"invalid|expired|used|revoked", re.IGNORECASE), RpcErrorKind.GONE),
    (re.compile(r"relation .* does not exist", re.IGNORECASE), RpcErrorKind.UNDEFINED_RELATION),
]


def classify_rpc_error(error: RpcError) -> RpcErrorKind:
    """Classify a data store error: structured fields first, message text last."""
    if error.code == TRANSPORT_ERROR_CODE:
        return RpcErrorKind.OTHER

    if error.hint and error.hint.strip().lower() in _HINT_KINDS:
        return _HINT_KINDS[error.hint.strip().lower()]

    if error.code and error.code in _CODE_KINDS:
        return _CODE_KINDS[error.code]

    if error.status == 401:
        return RpcErrorKind.UNAUTHENTICATED
    if error.status == 403:
        return RpcErrorKind.FORBIDDEN

    for pattern, kind in _LEGACY_PATTERNS:
        if pattern.search(error.message):
            return kind

    return RpcErrorKind.OTHER


@dataclass
class AuthUser:
    """Identity resolved from the caller's access token."""

    id: str
    email: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


class DataStoreClient:
    """Request-scoped client acting as the caller's identity."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        access_token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "apikey": anon_key,
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Data store unreachable", path=path, error=str(e))
            raise RpcError(
                message=f"Data store request failed: {e.__class__.__name__}",
                code=TRANSPORT_ERROR_CODE,
            ) from e

        if response.is_error:
            raise RpcError.from_response(response)
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def rpc(self, name: str, params: dict[str, Any] | None = None) -> Any:
        """Invoke a stored procedure by name and return its decoded result."""
        response = await self._request("POST", f"/rest/v1/rpc/{name}", json=params or {})
        return self._decode(response)

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: dict[str, str] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Read rows visible to the caller.

        Args:
            table: Table or view name.
            columns: PostgREST select expression.
            filters: Equality filters, column -> value.
            order: PostgREST order expression, e.g. ``created_at.desc``.
            limit: Maximum rows.
        """
        params: dict[str, str] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)

        response = await self._request("GET", f"/rest/v1/{table}", params=params)
        data = self._decode(response)
        if not isinstance(data, list):
            return []
        return [row for row in data if isinstance(row, dict)]

    async def get_user(self) -> AuthUser:
        """Resolve the identity behind the access token."""
        response = await self._request("GET", "/auth/v1/user")
        data = self._decode(response)
        if not isinstance(data, dict) or not data.get("id"):
            raise RpcError(message="Auth response without user id", status=response.status_code)
        return AuthUser(id=str(data["id"]), email=data.get("email"), raw=data)
