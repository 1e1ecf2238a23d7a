"""HTTP client for the invite and membership functions."""

from typing import Any, Self

import httpx

from src.app.core.logging import get_logger

logger = get_logger(__name__)

FUNCTIONS_PATH = "/.netlify/functions"
FALLBACK_ERROR_MESSAGE = "Er ging iets mis. Probeer later opnieuw."


class ApiError(Exception):
    """A function call failed; ``message`` is safe to show to a user."""

    def __init__(self, message: str, status: int | None = None):
        self.message = message
        self.status = status
        super().__init__(message)


def error_message_from_response(response: httpx.Response) -> str:
    """The server's ``error`` text, a nested ``error.message``, the raw body, or the fallback."""
    text = response.text.strip() if response.text else ""
    if not text:
        return FALLBACK_ERROR_MESSAGE

    try:
        data = response.json()
    except ValueError:
        return text

    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, str) and error.strip():
        return error.strip()
    if isinstance(error, dict):
        nested = error.get("message")
        if isinstance(nested, str) and nested.strip():
            return nested.strip()
    return text


class InvitesApiClient:
    """Async client sending the caller's bearer token to each function."""

    def __init__(
        self,
        base_url: str,
        access_token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.access_token = access_token
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _call(
        self,
        method: str,
        name: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        headers = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            response = await self._http.request(
                method, f"{FUNCTIONS_PATH}/{name}", json=json, params=params, headers=headers
            )
        except httpx.HTTPError as e:
            logger.warning("Function call failed", function=name, error=str(e))
            raise ApiError(FALLBACK_ERROR_MESSAGE) from e

        if response.is_error:
            raise ApiError(error_message_from_response(response), status=response.status_code)
        return response.json() if response.content else None

    async def create_invite(
        self,
        org_id: str,
        email: str,
        role: str,
        send_email: bool = True,
    ) -> dict[str, Any]:
        return await self._call(
            "POST",
            "createInvite",
            json={"p_org": org_id, "p_email": email, "p_role": role, "sendEmail": send_email},
        )

    async def accept_invite(self, token: str) -> dict[str, Any]:
        return await self._call("POST", "invites-accept", json={"token": token})

    async def resend_invite(
        self, org_id: str, email: str, send_email: bool = False
    ) -> dict[str, Any]:
        return await self._call(
            "POST",
            "invites-resend",
            json={"org_id": org_id, "email": email, "send_email": send_email},
        )

    async def revoke_invite(self, token: str) -> dict[str, Any]:
        return await self._call("POST", "invites-revoke", json={"token": token})

    async def list_members(self, org_id: str) -> list[dict[str, Any]]:
        data = await self._call("GET", "listMemberships", params={"org_id": org_id})
        items = data.get("items") if isinstance(data, dict) else None
        return items if isinstance(items, list) else []

    async def update_member_role(self, org_id: str, user_id: str, role: str) -> None:
        await self._call(
            "POST",
            "updateMemberRole",
            json={"p_org": org_id, "p_target": user_id, "p_role": role},
        )

    async def delete_member(self, org_id: str, user_id: str) -> None:
        await self._call("POST", "deleteMember", json={"p_org": org_id, "p_target": user_id})

    async def get_profile(self) -> dict[str, Any]:
        data = await self._call("GET", "getProfile")
        return data.get("profile", {}) if isinstance(data, dict) else {}
