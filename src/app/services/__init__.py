from src.app.services.invite_service import InviteService
from src.app.services.membership_service import MembershipService

__all__ = ["InviteService", "MembershipService"]
