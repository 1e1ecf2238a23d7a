"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from src.app.api.dependencies.auth import DataStore, SettingsDep
from src.app.core.urls import resolve_app_origin
from src.app.services.invite_service import InviteService
from src.app.services.membership_service import MembershipService


def get_membership_service(datastore: DataStore) -> MembershipService:
    return MembershipService(datastore)


MembershipServiceDep = Annotated[MembershipService, Depends(get_membership_service)]


def get_invite_service(
    datastore: DataStore,
    membership_service: MembershipServiceDep,
    settings: SettingsDep,
) -> InviteService:
    """Get invite service bound to the caller's data store client."""
    return InviteService(datastore, membership_service, settings)


def get_app_origin(request: Request, settings: SettingsDep) -> str:
    """Public origin for links and redirects built during this request."""
    return resolve_app_origin(settings, request.headers)


InviteServiceDep = Annotated[InviteService, Depends(get_invite_service)]
AppOrigin = Annotated[str, Depends(get_app_origin)]
