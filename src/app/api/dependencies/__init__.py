"""FastAPI dependency injection definitions.

Re-exports all dependencies so routes import from one place.
"""

# Auth
from src.app.api.dependencies.auth import (
    AccessToken,
    Caller,
    DataStore,
    SettingsDep,
    extract_bearer_token,
    get_access_token,
    get_caller,
    get_datastore,
)

# Services
from src.app.api.dependencies.services import (
    AppOrigin,
    InviteServiceDep,
    MembershipServiceDep,
    get_app_origin,
    get_invite_service,
    get_membership_service,
)

__all__ = [
    # Auth
    "AccessToken",
    "Caller",
    "DataStore",
    "SettingsDep",
    "extract_bearer_token",
    "get_access_token",
    "get_caller",
    "get_datastore",
    # Services
    "AppOrigin",
    "InviteServiceDep",
    "MembershipServiceDep",
    "get_app_origin",
    "get_invite_service",
    "get_membership_service",
]
