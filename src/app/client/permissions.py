"""Short-lived cache of permission check results.

Entries are keyed by (permission, organization), so an answer for one
organization is never served for another. This only hides affordances in a
client; the data store remains the authority.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class _Entry:
    allowed: bool
    expires_at: float


class PermissionCache:
    def __init__(
        self,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, str], _Entry] = {}

    def get(self, permission: str, org_id: str) -> bool | None:
        """Cached result, or None when absent or expired."""
        key = (permission, org_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.allowed

    def set(self, permission: str, org_id: str, allowed: bool) -> None:
        self._entries[(permission, org_id)] = _Entry(allowed, self._clock() + self.ttl_seconds)

    def invalidate(self, org_id: str | None = None) -> None:
        """Drop every entry, or only those for ``org_id``."""
        if org_id is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if k[1] == org_id]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
