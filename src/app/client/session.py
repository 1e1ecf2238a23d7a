"""Client session context: identity, memberships, active organization.

One explicit object per signed-in client. Its lifecycle is
``set_identity`` on every identity change and ``sign_out`` at the end.
"""

from collections.abc import Callable

from src.app.client.permissions import PermissionCache
from src.app.client.storage import (
    ACTIVE_ORG_KEY,
    MemoryPreferenceStore,
    PreferenceStore,
    drop_legacy_keys,
)
from src.app.core.config import Settings
from src.app.core.datastore import AuthUser, DataStoreClient, RpcError
from src.app.core.exceptions import AppError
from src.app.core.logging import get_logger
from src.app.models import MembershipRole, MembershipSummary
from src.app.services.membership_service import MembershipService

logger = get_logger(__name__)

HAS_PERMISSION_RPC = "has_permission"

DataStoreFactory = Callable[[str], DataStoreClient]


class SessionContext:
    """Session state for one client.

    Invariant after every membership load: the active organization is one of
    the caller's memberships, or None when there are none.
    """

    def __init__(
        self,
        datastore_factory: DataStoreFactory,
        preferences: PreferenceStore | None = None,
        permission_cache: PermissionCache | None = None,
    ):
        self._datastore_factory = datastore_factory
        self.preferences = preferences if preferences is not None else MemoryPreferenceStore()
        self.permission_cache = permission_cache if permission_cache is not None else PermissionCache()

        drop_legacy_keys(self.preferences)

        self.user: AuthUser | None = None
        self.access_token: str | None = None
        self.memberships: list[MembershipSummary] = []
        self._active_org_id = self.preferences.get(ACTIVE_ORG_KEY)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        preferences: PreferenceStore | None = None,
    ) -> "SessionContext":
        if not settings.datastore_configured:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required")

        def factory(access_token: str) -> DataStoreClient:
            return DataStoreClient(
                base_url=settings.supabase_url or "",
                anon_key=settings.supabase_anon_key or "",
                access_token=access_token,
                timeout=settings.datastore_timeout_seconds,
            )

        return cls(
            factory,
            preferences=preferences,
            permission_cache=PermissionCache(settings.permission_cache_ttl_seconds),
        )

    @property
    def active_org_id(self) -> str | None:
        return self._active_org_id

    @property
    def role_for_active_org(self) -> MembershipRole | None:
        if not self._active_org_id:
            return None
        for membership in self.memberships:
            if membership.org_id == self._active_org_id:
                return membership.role
        return None

    def _store_active_org(self, org_id: str | None) -> None:
        self._active_org_id = org_id
        if org_id:
            self.preferences.set(ACTIVE_ORG_KEY, org_id)
        else:
            self.preferences.remove(ACTIVE_ORG_KEY)

    def _heal_active_org(self) -> None:
        org_ids = [m.org_id for m in self.memberships]
        if self._active_org_id in org_ids:
            return
        healed = org_ids[0] if org_ids else None
        logger.info(
            "Active organization reset",
            previous=self._active_org_id,
            active_org_id=healed,
        )
        self._store_active_org(healed)

    async def set_identity(self, user: AuthUser | None, access_token: str | None) -> None:
        """Adopt a new identity (or none) and reconcile the active organization."""
        previous = self.user.id if self.user else None
        self.user = user
        self.access_token = access_token
        self.permission_cache.invalidate()
        if (user.id if user else None) != previous:
            logger.info("Session identity changed", user_id=user.id if user else None)
        await self.refresh_memberships()

    async def refresh_memberships(self) -> list[MembershipSummary]:
        """Reload the caller's memberships and heal the active organization.

        A failed load leaves the membership list empty and the stored
        selection untouched.
        """
        if self.user is None or not self.access_token:
            self.memberships = []
            self._store_active_org(None)
            return []

        try:
            async with self._datastore_factory(self.access_token) as datastore:
                memberships = await MembershipService(datastore).list_user_memberships(
                    self.user.id
                )
        except AppError as e:
            logger.error("Memberships load failed", error=e.message, code=e.code)
            self.memberships = []
            return []

        self.memberships = memberships
        self._heal_active_org()
        return memberships

    def set_active_org(self, org_id: str | None) -> None:
        """Select an organization the caller belongs to, or clear the selection."""
        if org_id is not None and org_id not in {m.org_id for m in self.memberships}:
            raise ValueError(f"Not a member of organization '{org_id}'")
        self._store_active_org(org_id)

    async def has_permission(
        self,
        permission: str,
        org_id: str | None = None,
        revalidate: bool = False,
    ) -> bool:
        """Ask the data store whether the caller holds ``permission``.

        Defaults to the active organization. Failed checks answer False and
        are not cached.
        """
        org = org_id or self._active_org_id
        if not org or not permission or not self.access_token:
            return False

        if not revalidate:
            cached = self.permission_cache.get(permission, org)
            if cached is not None:
                return cached

        try:
            async with self._datastore_factory(self.access_token) as datastore:
                result = await datastore.rpc(
                    HAS_PERMISSION_RPC, {"p_org_id": org, "p_perm": permission}
                )
        except RpcError as e:
            logger.error(
                "Permission check failed",
                permission=permission,
                org_id=org,
                error=e.message,
                code=e.code,
            )
            return False

        allowed = result is True
        self.permission_cache.set(permission, org, allowed)
        return allowed

    async def sign_out(self) -> None:
        await self.set_identity(None, None)
