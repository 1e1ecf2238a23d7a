"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import MemberRecordFactory, ...
"""

from tests.factories.base import BaseFactory, generate_id
from tests.factories.records import (
    InviteRecordFactory,
    MemberRecordFactory,
    MembershipSummaryFactory,
)

__all__ = [
    # Base
    "BaseFactory",
    "generate_id",
    # Records
    "InviteRecordFactory",
    "MemberRecordFactory",
    "MembershipSummaryFactory",
]
