"""CORS headers echoing the caller's origin, and the preflight responder."""

from collections.abc import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

ALLOWED_HEADERS = "Content-Type, Authorization"
PREFLIGHT_MAX_AGE = "86400"


def build_cors_headers(origin: str | None) -> dict[str, str]:
    """Echo the request origin (``*`` when absent) and vary on it."""
    return {
        "Access-Control-Allow-Origin": origin or "*",
        "Vary": "Origin",
    }


def allowed_methods(methods: Iterable[str]) -> list[str]:
    """Upper-cased, de-duplicated methods with OPTIONS appended."""
    allow: list[str] = []
    for method in [*methods, "OPTIONS"]:
        upper = method.upper()
        if upper not in allow:
            allow.append(upper)
    return allow


def preflight_response(request: Request, methods: Iterable[str]) -> Response:
    headers = build_cors_headers(request.headers.get("origin"))
    headers.update(
        {
            "Access-Control-Allow-Methods": ", ".join(allowed_methods(methods)),
            "Access-Control-Allow-Headers": ALLOWED_HEADERS,
            "Access-Control-Max-Age": PREFLIGHT_MAX_AGE,
        }
    )
    return Response(status_code=200, headers=headers)


class EchoOriginCorsMiddleware(BaseHTTPMiddleware):
    """Add origin-echoing CORS headers to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for header, value in build_cors_headers(request.headers.get("origin")).items():
            response.headers.setdefault(header, value)
        return response
