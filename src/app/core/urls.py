"""Public application origin and the links built on it."""

from collections.abc import Mapping
from urllib.parse import quote, urlencode

from src.app.core.config import Settings

FALLBACK_ORIGIN = "https://localhost"


def _first_forwarded(value: str | None) -> str | None:
    # Proxies may append; the first entry is the client-facing one.
    if not value:
        return None
    first = value.split(",")[0].strip()
    return first or None


def resolve_app_origin(settings: Settings, headers: Mapping[str, str]) -> str:
    """Configured origin, else the forwarded proto/host, else ``https://localhost``.

    The result never ends with a slash.
    """
    if settings.app_origin:
        return settings.app_origin.rstrip("/")

    host = _first_forwarded(headers.get("x-forwarded-host"))
    if host:
        proto = _first_forwarded(headers.get("x-forwarded-proto")) or "https"
        return f"{proto}://{host}".rstrip("/")

    return FALLBACK_ORIGIN


def build_accept_url(origin: str, token: str, path: str = "/accept-invite") -> str:
    """Link an invitee follows to redeem ``token``; the token is percent-encoded."""
    return f"{origin.rstrip('/')}{path}?{urlencode({'token': token}, quote_via=quote)}"


def build_post_accept_url(origin: str, path: str = "/app?accepted=1") -> str:
    return f"{origin.rstrip('/')}{path}"
