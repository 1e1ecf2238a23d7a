from src.app.schemas.invite import (
    AcceptInviteRequest,
    AcceptInviteResponse,
    CreateInviteRequest,
    CreateInviteResponse,
    InviteSummary,
    MailResult,
    ResendInviteRequest,
    ResendInviteResponse,
    RevokeInviteRequest,
    RevokeInviteResponse,
)
from src.app.schemas.membership import (
    DeleteMemberRequest,
    MemberListResponse,
    MemberRead,
    OkResponse,
    ProfileResponse,
    UpdateMemberRoleRequest,
)

__all__ = [
    # Invite
    "AcceptInviteRequest",
    "AcceptInviteResponse",
    "CreateInviteRequest",
    "CreateInviteResponse",
    "InviteSummary",
    "MailResult",
    "ResendInviteRequest",
    "ResendInviteResponse",
    "RevokeInviteRequest",
    "RevokeInviteResponse",
    # Membership
    "DeleteMemberRequest",
    "MemberListResponse",
    "MemberRead",
    "OkResponse",
    "ProfileResponse",
    "UpdateMemberRoleRequest",
]
