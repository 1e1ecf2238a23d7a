"""Shared enums for models."""

from enum import Enum


class MembershipRole(str, Enum):
    """User role within an organization.

    Ordered by privilege for gating only: ADMIN > TEAM > CUSTOMER.
    """

    ADMIN = "ADMIN"
    TEAM = "TEAM"
    CUSTOMER = "CUSTOMER"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def at_least(self, other: "MembershipRole") -> bool:
        return self.rank >= other.rank

    @classmethod
    def normalize(cls, value: object) -> "MembershipRole | None":
        """Trim and upper-case ``value``; None when it is not a known role."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


_ROLE_RANK = {
    MembershipRole.CUSTOMER: 0,
    MembershipRole.TEAM: 1,
    MembershipRole.ADMIN: 2,
}


class InviteStatus(str, Enum):
    """Invite state as reported by the data store; all but PENDING are terminal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"
    EXPIRED = "expired"


class MailFailureReason(str, Enum):
    """Why an invite email was not sent."""

    MISSING_ENV = "missing_env"
    API_ERROR = "api_error"
    DISABLED = "disabled"


class AcceptResponseMode(str, Enum):
    """How a successful redemption is answered."""

    REDIRECT = "redirect"
    JSON = "json"

    @classmethod
    def from_no_redirect(cls, no_redirect: bool) -> "AcceptResponseMode":
        return cls.JSON if no_redirect else cls.REDIRECT
