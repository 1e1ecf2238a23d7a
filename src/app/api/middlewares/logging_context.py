"""Logging context middleware for request correlation."""

from asgi_correlation_id import correlation_id
from fastapi import Request, Response
from starlette.middleware.base import RequestResponseEndpoint

from src.app.core.logging import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)


async def logging_context_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """Bind request_id, method and path to log context for the request."""
    clear_request_context()
    bind_request_context(correlation_id.get(), request.method, request.url.path)
    try:
        response = await call_next(request)
        logger.debug("Request completed", status=response.status_code)
        return response
    finally:
        clear_request_context()
