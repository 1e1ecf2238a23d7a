"""Membership administration endpoints.

Authorization for the mutations is enforced by the data store procedures;
their verdict is returned as-is.
"""

from typing import Annotated

from fastapi import APIRouter, Query

from src.app.api.dependencies import Caller, MembershipServiceDep
from src.app.core.logging import bind_caller_context
from src.app.schemas.membership import (
    DeleteMemberRequest,
    MemberListResponse,
    MemberRead,
    OkResponse,
    ProfileResponse,
    UpdateMemberRoleRequest,
)

router = APIRouter(tags=["members"])


@router.get(
    "/listMemberships",
    response_model=MemberListResponse,
    summary="List members",
    description="Members of an organization with their email, newest first.",
)
async def list_memberships(
    org_id: Annotated[str, Query(min_length=1)],
    membership_service: MembershipServiceDep,
) -> MemberListResponse:
    members = await membership_service.list_members(org_id)
    return MemberListResponse(items=[MemberRead.model_validate(m) for m in members])


@router.post(
    "/updateMemberRole",
    response_model=OkResponse,
    summary="Change a member's role",
)
async def update_member_role(
    request: UpdateMemberRoleRequest,
    membership_service: MembershipServiceDep,
) -> OkResponse:
    await membership_service.update_member_role(
        request.org_id, request.target_user_id, request.role
    )
    return OkResponse()


@router.post(
    "/deleteMember",
    response_model=OkResponse,
    summary="Remove a member",
)
async def delete_member(
    request: DeleteMemberRequest,
    membership_service: MembershipServiceDep,
) -> OkResponse:
    await membership_service.delete_member(request.org_id, request.target_user_id)
    return OkResponse()


@router.get(
    "/getProfile",
    response_model=ProfileResponse,
    summary="Get own profile",
)
async def get_profile(
    caller: Caller,
    membership_service: MembershipServiceDep,
) -> ProfileResponse:
    bind_caller_context(caller.id, email=caller.email)
    profile = await membership_service.get_profile(caller.id)
    return ProfileResponse(profile=profile)
