"""Programmatic client: session context, permission cache and API client."""

from src.app.client.api import ApiError, InvitesApiClient
from src.app.client.permissions import PermissionCache
from src.app.client.session import SessionContext
from src.app.client.storage import (
    ACTIVE_ORG_KEY,
    JsonFilePreferenceStore,
    MemoryPreferenceStore,
    PreferenceStore,
)

__all__ = [
    "ACTIVE_ORG_KEY",
    "ApiError",
    "InvitesApiClient",
    "JsonFilePreferenceStore",
    "MemoryPreferenceStore",
    "PermissionCache",
    "PreferenceStore",
    "SessionContext",
]
