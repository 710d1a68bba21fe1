"""
Draft Persistence.

Local, non-authoritative snapshots of in-progress form input, so a page can be
resumed after navigating away. One storage key per draft scope; each stored
record is JSON:

    {"scope": <storage key>, "entityId": <id or null>, "savedAt": <iso>, "data": <snapshot>}

Drafts are a convenience. Every storage failure is logged and swallowed here,
so callers never have to guard draft calls.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The storage backend refused a read or write."""


@runtime_checkable
class DraftStorage(Protocol):
    """
    Key/value string storage, shaped like browser localStorage.

    Implementations raise StorageError (or OSError) on failure.
    """

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    """
    In-process storage with an optional byte quota.

    A disabled store raises on every call, like storage blocked by the browser.
    """

    def __init__(self, quota_bytes: int | None = None, enabled: bool = True):
        self.quota_bytes = quota_bytes
        self.enabled = enabled
        self._items: dict[str, str] = {}

    def _check_enabled(self) -> None:
        if not self.enabled:
            raise StorageError("Storage is disabled")

    def get_item(self, key: str) -> str | None:
        self._check_enabled()
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check_enabled()
        if self.quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self._items.items() if k != key)
            if used + len(value.encode("utf-8")) > self.quota_bytes:
                raise StorageError("Storage quota exceeded")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._check_enabled()
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class FileStorage:
    """One JSON file per key under a directory."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_SAFE_KEY.sub('_', key)}.json"

    def get_item(self, key: str) -> str | None:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise StorageError(f"Unreadable draft file for {key}") from e

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# =============================================================================
# Scopes
# =============================================================================

@dataclass(frozen=True)
class DraftScope:
    """
    Where a draft lives and what it belongs to.

    `entity_id` pins a draft to one entity (e.g. the place being reviewed);
    a stored draft for a different entity is ignored on load.
    """
    storage_key: str
    entity_id: str | None = None


INTERESTS_SCOPE = DraftScope("user-interests")
SUB_INTERESTS_SCOPE = DraftScope("user-sub-interests")
DEALBREAKERS_SCOPE = DraftScope("dealbreakers")
REVIEW_STORAGE_KEY = "review_draft"

ONBOARDING_SCOPES = (INTERESTS_SCOPE, SUB_INTERESTS_SCOPE, DEALBREAKERS_SCOPE)


def review_scope(place_id: str) -> DraftScope:
    return DraftScope(REVIEW_STORAGE_KEY, place_id)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# DraftPersistence
# =============================================================================

class DraftPersistence:
    """Save, load and clear drafts with a swallow-and-log failure policy."""

    def __init__(self, storage: DraftStorage, clock: Callable[[], datetime] = _utc_now):
        self.storage = storage
        self.clock = clock

    def save(self, scope: DraftScope, snapshot: Any) -> bool:
        """
        Store a snapshot, replacing any previous one for the scope.

        Returns False if the snapshot could not be stored. Never raises.
        """
        record = {
            "scope": scope.storage_key,
            "entityId": scope.entity_id,
            "savedAt": self.clock().isoformat(),
            "data": snapshot,
        }
        try:
            payload = json.dumps(record)
            self.storage.set_item(scope.storage_key, payload)
        except (StorageError, OSError, TypeError, ValueError) as e:
            logger.warning(f"Could not save draft {scope.storage_key}: {e}")
            return False
        return True

    def load_record(self, scope: DraftScope) -> dict | None:
        """The full stored record for the scope, or None."""
        try:
            raw = self.storage.get_item(scope.storage_key)
        except (StorageError, OSError) as e:
            logger.warning(f"Could not read draft {scope.storage_key}: {e}")
            return None

        if raw is None:
            return None

        try:
            record = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Discarding corrupt draft {scope.storage_key}: {e}")
            return None

        if not isinstance(record, dict) or "data" not in record:
            logger.warning(f"Discarding malformed draft {scope.storage_key}")
            return None
        if record.get("scope") != scope.storage_key:
            return None
        if record.get("entityId") != scope.entity_id:
            logger.debug(
                f"Ignoring draft {scope.storage_key} for {record.get('entityId')!r}, "
                f"wanted {scope.entity_id!r}"
            )
            return None
        return record

    def load(self, scope: DraftScope) -> Any | None:
        """
        The last saved snapshot, or None.

        Absent, unreadable, corrupt, and other-entity drafts all count as none.
        """
        record = self.load_record(scope)
        return record["data"] if record else None

    def clear(self, scope: DraftScope) -> bool:
        """Remove the scope's draft. Returns False if removal failed. Never raises."""
        try:
            self.storage.remove_item(scope.storage_key)
        except (StorageError, OSError) as e:
            logger.warning(f"Could not clear draft {scope.storage_key}: {e}")
            return False
        return True

    def clear_all(self, scopes) -> None:
        for scope in scopes:
            self.clear(scope)
