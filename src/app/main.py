import secrets
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator

from src.app.api.functions.router import FUNCTIONS_PREFIX, functions_router
from src.app.api.middlewares import setup_middlewares
from src.app.core.config import get_settings
from src.app.core.exceptions import setup_exception_handlers
from src.app.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info(
        f"Starting {settings.app_name}",
        env=settings.app_env,
        datastore_configured=settings.datastore_configured,
        email_configured=settings.email_configured,
    )
    if not settings.datastore_configured:
        logger.error("SUPABASE_URL or SUPABASE_ANON_KEY not set - requests will fail with 500")

    yield

    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "invites", "description": "Organization invite issuance, redemption and lifecycle"},
    {"name": "members", "description": "Membership listing and role administration"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Invite and membership gateway in front of the hosted data store",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    setup_exception_handlers(app)
    setup_middlewares(app)

    app.include_router(functions_router, prefix=FUNCTIONS_PREFIX)

    # Prometheus metrics instrumentation
    instrumentator = Instrumentator().instrument(app)

    # Protect /metrics endpoint if API key is configured
    if settings.metrics_api_key:
        api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

        async def verify_metrics_key(api_key: str | None = Depends(api_key_header)) -> None:
            if (
                api_key is None
                or settings.metrics_api_key is None
                or not secrets.compare_digest(api_key, settings.metrics_api_key)
            ):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid or missing metrics API key",
                )

        instrumentator.expose(app, endpoint="/metrics", dependencies=[Depends(verify_metrics_key)])
    else:
        instrumentator.expose(app, endpoint="/metrics")

    @app.get("/health", include_in_schema=False)
    async def health() -> JSONResponse:
        """Liveness, plus whether the data store is configured."""
        current = get_settings()
        datastore = "configured" if current.datastore_configured else "not_configured"
        return JSONResponse(
            content={
                "status": "healthy" if current.datastore_configured else "degraded",
                "datastore": datastore,
                "email": "configured" if current.email_configured else "not_configured",
            },
            status_code=200,
        )

    return app


app = create_app()
