"""Application middlewares."""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI

from src.app.core.cors import EchoOriginCorsMiddleware

from .logging_context import logging_context_middleware

__all__ = [
    "setup_middlewares",
    "EchoOriginCorsMiddleware",
    "logging_context_middleware",
]


def setup_middlewares(app: FastAPI) -> None:
    """Configure all application middlewares.

    Middleware order matters - the last one added is the outermost.
    """
    # Logging context - binds request_id to structlog context
    @app.middleware("http")
    async def _logging_context(request, call_next):  # type: ignore[no-untyped-def]
        return await logging_context_middleware(request, call_next)

    # CORS - echo the caller's origin on every response
    app.add_middleware(EchoOriginCorsMiddleware)

    # Correlation ID - generates/propagates X-Request-ID
    app.add_middleware(CorrelationIdMiddleware)
