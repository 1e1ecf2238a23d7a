"""Bearer credential extraction and the caller-scoped data store client."""

import re
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header

from src.app.core.config import Settings, get_settings
from src.app.core.datastore import TRANSPORT_ERROR_CODE, AuthUser, DataStoreClient, RpcError
from src.app.core.exceptions import ConfigurationError, Unauthenticated, UpstreamError
from src.app.core.logging import bind_caller_context, get_logger

logger = get_logger(__name__)

BEARER_PATTERN = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)

SettingsDep = Annotated[Settings, Depends(get_settings)]


def extract_bearer_token(authorization: str | None) -> str | None:
    """Token from ``Bearer <token>`` (scheme case-insensitive), or None."""
    if not authorization:
        return None
    match = BEARER_PATTERN.match(authorization.strip())
    if match is None:
        return None
    return match.group(1).strip() or None


async def get_access_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Require a bearer credential before any other work is done."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise Unauthenticated()
    return token


AccessToken = Annotated[str, Depends(get_access_token)]


async def get_datastore(
    access_token: AccessToken,
    settings: SettingsDep,
) -> AsyncGenerator[DataStoreClient]:
    """Data store client acting as the caller; closed when the request ends."""
    if not settings.datastore_configured:
        logger.error("Data store is not configured", missing="SUPABASE_URL/SUPABASE_ANON_KEY")
        raise ConfigurationError()

    async with DataStoreClient(
        base_url=settings.supabase_url or "",
        anon_key=settings.supabase_anon_key or "",
        access_token=access_token,
        timeout=settings.datastore_timeout_seconds,
    ) as client:
        yield client


DataStore = Annotated[DataStoreClient, Depends(get_datastore)]


async def get_caller(datastore: DataStore) -> AuthUser:
    """Resolve the caller's identity through the data store's auth endpoint."""
    try:
        user = await datastore.get_user()
    except RpcError as e:
        if e.code == TRANSPORT_ERROR_CODE:
            raise UpstreamError.from_rpc(e) from e
        raise Unauthenticated("Invalid or expired token") from e

    bind_caller_context(user.id, email=user.email)
    return user


Caller = Annotated[AuthUser, Depends(get_caller)]
