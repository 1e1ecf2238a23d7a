"""Model exports.

Import from here: `from src.app.models import MembershipRole, InviteRecord`
"""

# Enums
from src.app.models.enums import (
    AcceptResponseMode,
    InviteStatus,
    MailFailureReason,
    MembershipRole,
)

# Data store records
from src.app.models.records import (
    AcceptedInvite,
    InviteRecord,
    MemberRecord,
    MembershipSummary,
)

__all__ = [
    # Enums
    "AcceptResponseMode",
    "InviteStatus",
    "MailFailureReason",
    "MembershipRole",
    # Data store records
    "AcceptedInvite",
    "InviteRecord",
    "MemberRecord",
    "MembershipSummary",
]
