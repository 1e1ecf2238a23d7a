"""In-memory stand-in for the hosted data store.

``FakeBackend`` holds users, memberships, profiles and invites and enforces
the rules the real procedures enforce (admin-only mutations, single-use
tokens). ``FakeDataStore`` is the per-caller client handed to the app in
place of ``DataStoreClient``.
"""

import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from src.app.core.datastore import AuthUser, RpcError

ORG_ID = "3f2c1a9e-7b4d-4c8e-9a61-2d5e8f0b7c14"
ALICE_TOKEN = "alice-token"
BOB_TOKEN = "bob-token"
CAROL_TOKEN = "carol-token"
TEAM_TOKEN = "dave-token"


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _not_authorized() -> RpcError:
    return RpcError(message="not authorized", code="42501", status=403)


@dataclass
class FakeBackend:
    users: dict[str, AuthUser] = field(default_factory=dict)
    memberships: list[dict[str, Any]] = field(default_factory=list)
    profiles: dict[str, dict[str, Any]] = field(default_factory=dict)
    invites: dict[str, dict[str, Any]] = field(default_factory=dict)
    members_view_exists: bool = True
    rpc_errors: dict[str, RpcError] = field(default_factory=dict)
    rpc_calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    select_errors: dict[str, RpcError] = field(default_factory=dict)
    select_calls: list[str] = field(default_factory=list)

    def add_user(self, token: str, user_id: str, email: str) -> AuthUser:
        user = AuthUser(id=user_id, email=email, raw={"id": user_id, "email": email})
        self.users[token] = user
        self.profiles[user_id] = {"id": user_id, "email": email, "full_name": None}
        return user

    def add_membership(self, org_id: str, user_id: str, role: str) -> dict[str, Any]:
        row = {
            "id": str(uuid4()),
            "org_id": org_id,
            "user_id": user_id,
            "role": role,
            "created_at": datetime.now(UTC).isoformat(),
        }
        self.memberships.append(row)
        return row

    def client_for(self, access_token: str) -> "FakeDataStore":
        return FakeDataStore(self, access_token)

    def role_of(self, user_id: str, org_id: str) -> str | None:
        for row in self.memberships:
            if row["user_id"] == user_id and row["org_id"] == org_id:
                return row["role"]
        return None

    def members_of(self, org_id: str) -> list[dict[str, Any]]:
        return [row for row in self.memberships if row["org_id"] == org_id]

    def rpc_names(self) -> list[str]:
        return [name for name, _ in self.rpc_calls]


def seeded_backend() -> FakeBackend:
    """ORG_ID with alice (ADMIN), carol (CUSTOMER), dave (TEAM); bob has no membership."""
    backend = FakeBackend()
    backend.add_user(ALICE_TOKEN, "user-alice", "alice@example.com")
    backend.add_user(BOB_TOKEN, "user-bob", "bob@example.com")
    backend.add_user(CAROL_TOKEN, "user-carol", "carol@example.com")
    backend.add_user(TEAM_TOKEN, "user-dave", "dave@example.com")
    backend.add_membership(ORG_ID, "user-alice", "ADMIN")
    backend.add_membership(ORG_ID, "user-carol", "CUSTOMER")
    backend.add_membership(ORG_ID, "user-dave", "TEAM")
    return backend


class FakeDataStore:
    """Caller-scoped client over a FakeBackend."""

    def __init__(self, backend: FakeBackend, access_token: str):
        self.backend = backend
        self.access_token = access_token
        self.closed = False

    async def __aenter__(self) -> "FakeDataStore":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self.closed = True

    def _caller(self) -> AuthUser:
        user = self.backend.users.get(self.access_token)
        if user is None:
            raise RpcError(message="JWT expired", code="PGRST301", status=401)
        return user

    async def get_user(self) -> AuthUser:
        return self._caller()

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: dict[str, str] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        self.backend.select_calls.append(table)
        if table in self.backend.select_errors:
            raise self.backend.select_errors[table]
        self._caller()
        filters = filters or {}

        if table == "profiles":
            rows = list(self.backend.profiles.values())
        elif table == "v_org_members":
            if not self.backend.members_view_exists:
                raise RpcError(
                    message='relation "public.v_org_members" does not exist',
                    code="42P01",
                    status=404,
                )
            rows = [
                {**row, "email": self.backend.profiles.get(row["user_id"], {}).get("email")}
                for row in self.backend.memberships
            ]
        elif table in ("memberships", "memberships_view"):
            rows = [dict(row) for row in self.backend.memberships]
            if "profiles" in columns:
                for row in rows:
                    row["profiles"] = {
                        "email": self.backend.profiles.get(row["user_id"], {}).get("email")
                    }
        else:
            raise RpcError(message=f'relation "{table}" does not exist', code="42P01", status=404)

        rows = [row for row in rows if all(str(row.get(k)) == v for k, v in filters.items())]
        if order == "created_at.desc":
            rows.sort(key=lambda row: row.get("created_at") or "", reverse=True)
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def rpc(self, name: str, params: dict[str, Any] | None = None) -> Any:
        params = params or {}
        self.backend.rpc_calls.append((name, params))
        if name in self.backend.rpc_errors:
            raise self.backend.rpc_errors[name]

        caller = self._caller()
        handler = getattr(self, f"_rpc_{name}", None)
        if handler is None:
            raise RpcError(message=f"Could not find the function public.{name}", code="PGRST202", status=404)
        return handler(caller, params)

    def _is_admin(self, caller: AuthUser, org_id: str) -> bool:
        return self.backend.role_of(caller.id, org_id) == "ADMIN"

    def _rpc_create_invite(self, caller: AuthUser, params: dict[str, Any]) -> Any:
        if not self._is_admin(caller, params["p_org"]):
            raise _not_authorized()
        token = secrets.token_urlsafe(24)
        invite = {
            "id": str(uuid4()),
            "org_id": params["p_org"],
            "email": params["p_email"],
            "role": params["p_role"],
            "token": token,
            "status": "pending",
            "expires_at": (datetime.now(UTC) + timedelta(days=7)).isoformat(),
        }
        self.backend.invites[token] = invite
        return [{k: invite[k] for k in ("id", "token", "email", "role", "expires_at")}]

    def _rpc_accept_invite(self, caller: AuthUser, params: dict[str, Any]) -> Any:
        invite = self.backend.invites.get(params["p_token"])
        if invite is None:
            raise RpcError(message="invite invalid", code="P0001", hint="invite_invalid", status=400)
        if invite["status"] != "pending":
            raise RpcError(message="invite already used", code="P0001", hint="invite_used", status=400)

        invite["status"] = "accepted"
        membership = self.backend.add_membership(invite["org_id"], caller.id, invite["role"])
        return {
            "org_id": invite["org_id"],
            "membership_id": membership["id"],
            "email": invite["email"],
            "role": invite["role"].lower(),
        }

    def _rpc_resend_invite(self, caller: AuthUser, params: dict[str, Any]) -> Any:
        if not self._is_admin(caller, params["p_org_id"]):
            raise RpcError(message="Alleen admins mogen uitnodigingen opnieuw versturen", status=400)
        for token, invite in list(self.backend.invites.items()):
            if (
                invite["org_id"] == params["p_org_id"]
                and invite["email"] == params["p_email"]
                and invite["status"] == "pending"
            ):
                new_token = secrets.token_urlsafe(24)
                del self.backend.invites[token]
                self.backend.invites[new_token] = {**invite, "token": new_token}
                return new_token
        raise RpcError(message="Geen openstaande uitnodiging gevonden", code="P0001", status=400)

    def _rpc_revoke_invite(self, caller: AuthUser, params: dict[str, Any]) -> Any:
        invite = self.backend.invites.get(params["p_token"])
        if invite is None or not self._is_admin(caller, invite["org_id"]):
            raise RpcError(message="Uitnodiging niet gevonden", code="P0001", status=400)
        invite["status"] = "revoked"
        return None

    def _rpc_update_member_role(self, caller: AuthUser, params: dict[str, Any]) -> Any:
        if not self._is_admin(caller, params["p_org"]):
            raise _not_authorized()
        for row in self.backend.memberships:
            if row["org_id"] == params["p_org"] and row["user_id"] == params["p_target"]:
                row["role"] = params["p_role"]
        return None

    def _rpc_admin_delete_member(self, caller: AuthUser, params: dict[str, Any]) -> Any:
        if not self._is_admin(caller, params["p_org_id"]):
            raise _not_authorized()
        self.backend.memberships = [
            row
            for row in self.backend.memberships
            if not (row["org_id"] == params["p_org_id"] and row["user_id"] == params["p_member_id"])
        ]
        return None

    def _rpc_has_permission(self, caller: AuthUser, params: dict[str, Any]) -> Any:
        role = self.backend.role_of(caller.id, params["p_org_id"])
        if role == "ADMIN":
            return True
        if role == "TEAM":
            return params["p_perm"].startswith("chat.")
        return False
