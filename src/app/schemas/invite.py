"""Invite schemas.

Request bodies accept both the procedure-style (``p_org``) and the plain
(``org_id``) spelling of each field. The aliases are declared once here; the
first spelling present wins.
"""

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
)
from pydantic_core import PydanticCustomError

from src.app.models.enums import MailFailureReason, MembershipRole

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

INVALID_ROLE_MESSAGE = "p_role must be ADMIN, TEAM of CUSTOMER"
INVALID_ORG_ID_MESSAGE = "p_org must be a uuid"


def parse_role(value: Any) -> MembershipRole:
    """Normalize a role or raise the ``invalid_role`` validation error."""
    role = MembershipRole.normalize(value)
    if role is None:
        raise PydanticCustomError("invalid_role", INVALID_ROLE_MESSAGE)
    return role


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class _RequestBody(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CreateInviteRequest(_RequestBody):
    """Request to invite an email address into an organization."""

    org_id: NonEmptyStr = Field(validation_alias=AliasChoices("p_org", "org_id"))
    email: EmailStr = Field(validation_alias=AliasChoices("p_email", "email"))
    role: MembershipRole = Field(
        default=None,
        validate_default=True,
        validation_alias=AliasChoices("p_role", "role"),
    )
    send_email: bool = Field(default=True, validation_alias=AliasChoices("sendEmail", "send_email"))

    @field_validator("org_id")
    @classmethod
    def validate_org_id(cls, v: str) -> str:
        try:
            return str(UUID(v))
        except ValueError:
            raise PydanticCustomError("invalid_org_id", INVALID_ORG_ID_MESSAGE) from None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        v = _strip(v)
        return v.lower() if isinstance(v, str) else v

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, v: Any) -> MembershipRole:
        return parse_role(v)


class AcceptInviteRequest(_RequestBody):
    """Body form of a redemption (``POST invites-accept``)."""

    token: str | None = Field(default=None, validation_alias=AliasChoices("p_token", "token"))


class ResendInviteRequest(_RequestBody):
    """Re-issue a pending invite for (organization, email)."""

    org_id: NonEmptyStr = Field(validation_alias=AliasChoices("p_org_id", "org_id", "p_org"))
    email: NonEmptyStr = Field(validation_alias=AliasChoices("p_email", "email"))
    send_email: bool = Field(
        default=False, validation_alias=AliasChoices("send_email", "sendEmail")
    )

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class RevokeInviteRequest(_RequestBody):
    token: NonEmptyStr = Field(validation_alias=AliasChoices("p_token", "token"))


class MailResult(BaseModel):
    """Outcome of the best-effort invite email."""

    attempted: bool
    sent: bool
    reason: MailFailureReason | None = None
    status: int | None = None

    @classmethod
    def disabled(cls) -> "MailResult":
        return cls(attempted=False, sent=False, reason=MailFailureReason.DISABLED)

    @classmethod
    def missing_env(cls) -> "MailResult":
        return cls(attempted=False, sent=False, reason=MailFailureReason.MISSING_ENV)

    @classmethod
    def api_error(cls, status: int | None = None) -> "MailResult":
        return cls(attempted=True, sent=False, reason=MailFailureReason.API_ERROR, status=status)

    @classmethod
    def delivered(cls) -> "MailResult":
        return cls(attempted=True, sent=True)


class InviteSummary(BaseModel):
    id: str | None
    email: str
    role: MembershipRole
    expires_at: datetime | None = None


class CreateInviteResponse(BaseModel):
    """Response after creating an invite.

    ``email`` reports delivery separately; a failed delivery is still a 200.
    """

    model_config = ConfigDict(populate_by_name=True)

    accept_url: str = Field(serialization_alias="acceptUrl")
    invite: InviteSummary
    email: MailResult


class AcceptInviteResponse(BaseModel):
    success: bool = True
    org_id: str | None
    membership_id: str | None = None
    email: str | None = None
    role: str | None = None


class ResendInviteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    emailed: bool
    accept_url: str = Field(serialization_alias="acceptUrl")
    email: MailResult


class RevokeInviteResponse(BaseModel):
    success: bool = True
