"""Invite issuance, redemption and lifecycle endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import RedirectResponse, Response

from src.app.api.dependencies import AppOrigin, Caller, InviteServiceDep, SettingsDep
from src.app.core.logging import bind_caller_context
from src.app.core.urls import build_post_accept_url
from src.app.models import AcceptedInvite, AcceptResponseMode
from src.app.schemas.invite import (
    AcceptInviteRequest,
    AcceptInviteResponse,
    CreateInviteRequest,
    CreateInviteResponse,
    ResendInviteRequest,
    ResendInviteResponse,
    RevokeInviteRequest,
    RevokeInviteResponse,
)

router = APIRouter(tags=["invites"])


def _accept_response(accepted: AcceptedInvite) -> AcceptInviteResponse:
    return AcceptInviteResponse(
        org_id=accepted.org_id,
        membership_id=accepted.membership_id,
        email=accepted.email,
        role=accepted.role,
    )


@router.post(
    "/createInvite",
    response_model=CreateInviteResponse,
    summary="Create invite",
    description=(
        "Create an invite for an email address and optionally email the accept link. "
        "ADMIN role in the organization required."
    ),
)
async def create_invite(
    request: CreateInviteRequest,
    caller: Caller,
    invite_service: InviteServiceDep,
    origin: AppOrigin,
) -> CreateInviteResponse:
    bind_caller_context(caller.id, request.org_id, caller.email)
    return await invite_service.create_invite(caller, request, origin)


@router.get(
    "/acceptInvite",
    summary="Accept invite",
    description=(
        "Redeem an invite token for the caller. Redirects to the application unless "
        "noRedirect is set; failures are always JSON."
    ),
    responses={
        200: {"model": AcceptInviteResponse},
        302: {"description": "Redirect to the post-accept landing page"},
    },
)
async def accept_invite(
    invite_service: InviteServiceDep,
    origin: AppOrigin,
    settings: SettingsDep,
    token: str | None = None,
    no_redirect: Annotated[bool, Query(alias="noRedirect")] = False,
) -> Response:
    accepted = await invite_service.accept_invite(token)

    mode = AcceptResponseMode.from_no_redirect(no_redirect)
    if mode is AcceptResponseMode.REDIRECT:
        return RedirectResponse(
            build_post_accept_url(origin, settings.post_accept_path), status_code=302
        )
    return Response(
        content=_accept_response(accepted).model_dump_json(),
        media_type="application/json",
    )


@router.post(
    "/invites-accept",
    response_model=AcceptInviteResponse,
    summary="Accept invite (JSON)",
)
async def accept_invite_json(
    request: AcceptInviteRequest,
    invite_service: InviteServiceDep,
) -> AcceptInviteResponse:
    accepted = await invite_service.accept_invite(request.token)
    return _accept_response(accepted)


@router.post(
    "/invites-resend",
    response_model=ResendInviteResponse,
    summary="Resend invite",
    description="Re-issue the pending invite for an organization and email address.",
)
async def resend_invite(
    request: ResendInviteRequest,
    invite_service: InviteServiceDep,
    origin: AppOrigin,
) -> ResendInviteResponse:
    return await invite_service.resend_invite(request, origin)


@router.post(
    "/invites-revoke",
    response_model=RevokeInviteResponse,
    summary="Revoke invite",
)
async def revoke_invite(
    request: RevokeInviteRequest,
    invite_service: InviteServiceDep,
) -> RevokeInviteResponse:
    await invite_service.revoke_invite(request.token)
    return RevokeInviteResponse()
