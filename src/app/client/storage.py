"""Client-local preference storage for the selected organization."""

import json
from pathlib import Path
from typing import Protocol

from src.app.core.logging import get_logger

logger = get_logger(__name__)

ACTIVE_ORG_KEY = "blueline.activeOrgId"
LEGACY_KEYS = ("activeOrgId",)


class PreferenceStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryPreferenceStore:
    """Process-local store; used by tests and short-lived scripts."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFilePreferenceStore:
    """Preferences kept as a flat JSON object in one file.

    An unreadable or corrupt file reads as empty. Writes replace the file
    atomically.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Preference file unreadable", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save(self, values: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(values, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        self._save(values)

    def remove(self, key: str) -> None:
        values = self._load()
        if key in values:
            del values[key]
            self._save(values)


def drop_legacy_keys(store: PreferenceStore) -> None:
    for key in LEGACY_KEYS:
        if key != ACTIVE_ORG_KEY:
            store.remove(key)
