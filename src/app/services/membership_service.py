"""Membership and role administration.

Authorization for mutations lives in the data store's procedures. This
service forwards the caller's request and surfaces the store's verdict.
"""

from typing import Any

from src.app.core.datastore import DataStoreClient, RpcError, RpcErrorKind, classify_rpc_error
from src.app.core.exceptions import (
    Forbidden,
    NotFound,
    Unauthenticated,
    UpstreamError,
    app_error_for_rpc,
)
from src.app.core.logging import get_logger
from src.app.models import MemberRecord, MembershipRole, MembershipSummary

logger = get_logger(__name__)

MEMBERS_VIEW = "v_org_members"
MEMBERSHIPS_TABLE = "memberships"
MEMBERSHIPS_VIEW = "memberships_view"
PROFILES_TABLE = "profiles"

UPDATE_MEMBER_ROLE_RPC = "update_member_role"
DELETE_MEMBER_RPC = "admin_delete_member"


class MembershipService:
    """Service for membership reads and administrative mutations."""

    def __init__(self, datastore: DataStoreClient):
        self.datastore = datastore

    async def get_role(self, user_id: str, org_id: str) -> MembershipRole | None:
        """Role of ``user_id`` in ``org_id`` as visible to the caller, or None."""
        try:
            rows = await self.datastore.select(
                MEMBERSHIPS_TABLE,
                columns="role",
                filters={"org_id": org_id, "user_id": user_id},
                limit=1,
            )
        except RpcError as e:
            raise app_error_for_rpc(e) from e

        if not rows:
            return None
        return MembershipRole.normalize(rows[0].get("role"))

    async def require_admin(self, user_id: str, org_id: str) -> None:
        """Raise Forbidden unless the caller holds ADMIN in ``org_id``."""
        role = await self.get_role(user_id, org_id)
        if role is not MembershipRole.ADMIN:
            logger.info("Admin check failed", org_id=org_id, role=role.value if role else None)
            raise Forbidden("Alleen admins van deze organisatie mogen dit doen")

    async def list_members(self, org_id: str) -> list[MemberRecord]:
        """Members of ``org_id``, newest first."""
        try:
            rows = await self.datastore.select(
                MEMBERS_VIEW,
                columns="org_id,user_id,role,created_at,email",
                filters={"org_id": org_id},
                order="created_at.desc",
            )
        except RpcError as e:
            if classify_rpc_error(e) is not RpcErrorKind.UNDEFINED_RELATION:
                raise UpstreamError.from_rpc(e) from e
            logger.info("Members view missing, using join", view=MEMBERS_VIEW)
            rows = await self._list_members_joined(org_id)

        return [MemberRecord.from_row(row) for row in rows]

    async def _list_members_joined(self, org_id: str) -> list[dict[str, Any]]:
        try:
            return await self.datastore.select(
                MEMBERSHIPS_TABLE,
                columns="org_id,user_id,role,created_at,profiles:profiles!inner(email)",
                filters={"org_id": org_id},
                order="created_at.desc",
            )
        except RpcError as e:
            raise UpstreamError.from_rpc(e) from e

    async def list_user_memberships(self, user_id: str) -> list[MembershipSummary]:
        """The caller's own memberships across organizations."""
        try:
            rows = await self.datastore.select(
                MEMBERSHIPS_VIEW,
                columns="org_id,role",
                filters={"user_id": user_id},
            )
        except RpcError as e:
            raise app_error_for_rpc(e) from e
        return [MembershipSummary.model_validate(row) for row in rows]

    async def update_member_role(
        self, org_id: str, target_user_id: str, role: MembershipRole
    ) -> None:
        try:
            await self.datastore.rpc(
                UPDATE_MEMBER_ROLE_RPC,
                {"p_org": org_id, "p_target": target_user_id, "p_role": role.value},
            )
        except RpcError as e:
            logger.warning(
                "Member role update rejected",
                org_id=org_id,
                target_user_id=target_user_id,
                error=e.message,
                status=e.status,
            )
            raise UpstreamError.from_rpc(e, pass_status=True) from e

        logger.info(
            "Member role updated", org_id=org_id, target_user_id=target_user_id, role=role.value
        )

    async def delete_member(self, org_id: str, target_user_id: str) -> None:
        try:
            await self.datastore.rpc(
                DELETE_MEMBER_RPC,
                {"p_org_id": org_id, "p_member_id": target_user_id},
            )
        except RpcError as e:
            logger.warning(
                "Member deletion rejected",
                org_id=org_id,
                target_user_id=target_user_id,
                error=e.message,
                status=e.status,
            )
            raise UpstreamError.from_rpc(e, pass_status=True) from e

        logger.info("Member deleted", org_id=org_id, target_user_id=target_user_id)

    async def get_profile(self, user_id: str) -> dict[str, Any]:
        """The caller's own profile row."""
        try:
            rows = await self.datastore.select(
                PROFILES_TABLE, columns="*", filters={"id": user_id}, limit=1
            )
        except RpcError as e:
            if classify_rpc_error(e) is RpcErrorKind.UNAUTHENTICATED:
                raise Unauthenticated.from_rpc(e) from e
            raise UpstreamError.from_rpc(e) from e
        if not rows:
            raise NotFound("Profiel niet gevonden")
        return rows[0]
