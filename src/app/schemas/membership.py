"""Membership administration schemas."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from src.app.models.enums import MembershipRole
from src.app.schemas.invite import NonEmptyStr, parse_role


class _RequestBody(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UpdateMemberRoleRequest(_RequestBody):
    org_id: NonEmptyStr = Field(validation_alias=AliasChoices("p_org", "org_id", "p_org_id"))
    target_user_id: NonEmptyStr = Field(
        validation_alias=AliasChoices("p_target", "target_user_id", "p_member_id")
    )
    role: MembershipRole = Field(
        default=None,
        validate_default=True,
        validation_alias=AliasChoices("p_role", "role"),
    )

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, v: Any) -> MembershipRole:
        return parse_role(v)


class DeleteMemberRequest(_RequestBody):
    org_id: NonEmptyStr = Field(validation_alias=AliasChoices("p_org", "org_id", "p_org_id"))
    target_user_id: NonEmptyStr = Field(
        validation_alias=AliasChoices("p_target", "target_user_id", "p_member_id")
    )


class MemberRead(BaseModel):
    org_id: str
    user_id: str
    role: str
    email: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class MemberListResponse(BaseModel):
    items: list[MemberRead]


class OkResponse(BaseModel):
    ok: bool = True


class ProfileResponse(BaseModel):
    profile: dict[str, Any]
