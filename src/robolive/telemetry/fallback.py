"""Durable "last known data" mirror of a robot's telemetry cache.

Every cache change is written to a key-value storage under
``robot_{robot_id}_last_data`` so that a revisited view can show the last
known values (with their age) before a live connection is up.  The mirror
is a convenience: storage and serialization failures are logged and
swallowed, and the in-memory cache stays authoritative.
"""

from __future__ import annotations

import json
import logging
import re
import time
from datetime import UTC, datetime
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import quote, unquote

from pydantic import ValidationError

from robolive.models.telemetry import CHANNEL_MODELS, Channel
from robolive.telemetry.cache import ChannelEntry, TelemetrySnapshot

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

LAST_UPDATED_KEY = "lastUpdated"

_KEY_RE = re.compile(r"^robot_(?P<robot_id>.+)_last_data$")


def fallback_key(robot_id: str) -> str:
    """Return the storage key for *robot_id*.

    >>> fallback_key("RB-01")
    'robot_RB-01_last_data'
    """
    return f"robot_{robot_id}_last_data"


# ---------------------------------------------------------------------------
# Storage backends
# ---------------------------------------------------------------------------


class KeyValueStorage(Protocol):
    """String-keyed persistent storage (``localStorage``-like)."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> bool: ...

    def keys(self) -> list[str]: ...


class MemoryStorage:
    """Process-local storage, mainly for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._items)


class FileStorage:
    """One JSON file per key inside *directory*.

    File names are the percent-encoded key, so distinct keys never share a file.
    """

    def __init__(self, directory: Path) -> None:
        self._dir = directory

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        return self._dir / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def keys(self) -> list[str]:
        if not self._dir.is_dir():
            return []
        return sorted(unquote(p.stem) for p in self._dir.glob("*.json"))


# ---------------------------------------------------------------------------
# Fallback cache
# ---------------------------------------------------------------------------


class FallbackCache:
    """Serializes :class:`TelemetrySnapshot` objects to a storage backend.

    Parameters:
        storage: Where snapshots are written.
        clock: Wall-clock source for the ``lastUpdated`` stamp (epoch seconds).
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._clock = clock

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    def save(self, robot_id: str, snapshot: TelemetrySnapshot) -> bool:
        """Write *snapshot* under *robot_id*'s key; return ``True`` on success."""
        try:
            blob: dict[str, Any] = {
                str(channel): entry.value.model_dump(mode="json", by_alias=True)
                for channel, entry in snapshot.channels.items()
            }
            blob[LAST_UPDATED_KEY] = int(self._clock() * 1000)
            self._storage.set(fallback_key(robot_id), json.dumps(blob))
        except Exception:
            logger.warning("Failed to save fallback telemetry for %s", robot_id, exc_info=True)
            return False
        return True

    def load(self, robot_id: str) -> TelemetrySnapshot | None:
        """Return the stored snapshot for *robot_id*, or ``None``.

        All channels share the stored ``lastUpdated`` time as their timestamp.
        Unknown channel names and payloads that no longer validate are skipped.
        """
        try:
            raw = self._storage.get(fallback_key(robot_id))
            if raw is None:
                return None
            blob = json.loads(raw)
        except Exception:
            logger.warning("Failed to read fallback telemetry for %s", robot_id, exc_info=True)
            return None

        if not isinstance(blob, dict):
            logger.warning("Ignoring non-object fallback entry for %s", robot_id)
            return None

        stamp = blob.get(LAST_UPDATED_KEY)
        if not isinstance(stamp, int | float) or isinstance(stamp, bool):
            stamp = 0
        timestamp = datetime.fromtimestamp(stamp / 1000, tz=UTC)

        channels: dict[Channel, ChannelEntry] = {}
        for name, payload in blob.items():
            if name == LAST_UPDATED_KEY:
                continue
            try:
                channel = Channel(name)
            except ValueError:
                logger.debug("Skipping unknown fallback channel %r", name)
                continue
            try:
                value = CHANNEL_MODELS[channel].model_validate(payload)
            except ValidationError:
                logger.warning("Skipping invalid fallback payload for %s.%s", robot_id, name)
                continue
            channels[channel] = ChannelEntry(value=value, timestamp=timestamp)

        return TelemetrySnapshot(robot_id=robot_id, channels=MappingProxyType(channels))

    def clear(self, robot_id: str | None = None) -> int:
        """Delete one robot's entry, or every entry when *robot_id* is ``None``."""
        targets = [fallback_key(robot_id)] if robot_id else self._entry_keys()
        removed = 0
        for key in targets:
            try:
                if self._storage.delete(key):
                    removed += 1
            except Exception:
                logger.warning("Failed to delete fallback entry %s", key, exc_info=True)
        return removed

    def entries(self) -> list[str]:
        """Robot identifiers that currently have a stored snapshot."""
        ids: list[str] = []
        for key in self._entry_keys():
            match = _KEY_RE.match(key)
            if match:
                ids.append(match.group("robot_id"))
        return ids

    def _entry_keys(self) -> list[str]:
        try:
            return [k for k in self._storage.keys() if _KEY_RE.match(k)]
        except Exception:
            logger.warning("Failed to list fallback entries", exc_info=True)
            return []
