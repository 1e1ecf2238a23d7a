"""Transient views of rows owned by the external data store.

Nothing here is authoritative; each instance is read per request and dropped.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from src.app.models.enums import MembershipRole


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore")


class InviteRecord(_Record):
    """Row returned by ``create_invite``."""

    id: str | None = None
    token: str | None = None
    email: str | None = None
    role: str | None = None
    expires_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str | None:
        return None if v is None else str(v)


class AcceptedInvite(_Record):
    """Result of ``accept_invite``: the membership bound to the caller."""

    org_id: str | None = None
    membership_id: str | None = None
    email: str | None = None
    role: str | None = None

    @field_validator("org_id", "membership_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    @field_validator("role", mode="before")
    @classmethod
    def upper_role(cls, v: Any) -> str | None:
        return v.strip().upper() if isinstance(v, str) else v


class MemberRecord(_Record):
    """One membership joined with the member's profile email."""

    org_id: str
    user_id: str
    role: str
    email: str | None = None
    created_at: datetime | None = None

    @field_validator("org_id", "user_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: Any) -> str:
        return str(v)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "MemberRecord":
        """Flatten the ``profiles`` embed used by the join fallback."""
        email = row.get("email")
        if email is None and isinstance(row.get("profiles"), dict):
            email = row["profiles"].get("email")
        return cls.model_validate({**row, "email": email})


class MembershipSummary(_Record):
    """The caller's own membership in one organization."""

    org_id: str
    role: MembershipRole | None = None

    @field_validator("org_id", mode="before")
    @classmethod
    def coerce_org_id(cls, v: Any) -> str:
        return str(v)

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: Any) -> MembershipRole | None:
        return MembershipRole.normalize(v)
