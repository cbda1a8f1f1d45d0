"""In-memory store for the latest telemetry value per channel.

Owned by exactly one :class:`~robolive.telemetry.session.RobotSession`.
Written by the :class:`StreamReconciler` and the :class:`StalenessSweeper`,
read by the presentation layer through :meth:`TelemetryCache.snapshot`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from robolive.models.telemetry import Channel

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from robolive.models.telemetry import ChannelPayload


@dataclass(slots=True)
class ChannelEntry:
    """A single channel's most recent value and when it arrived."""

    value: ChannelPayload
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class TelemetrySnapshot:
    """Read-only copy of a robot's telemetry for rendering."""

    robot_id: str
    channels: Mapping[Channel, ChannelEntry] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def get(self, channel: Channel) -> ChannelPayload | None:
        entry = self.channels.get(channel)
        return entry.value if entry is not None else None

    def entry(self, channel: Channel) -> ChannelEntry | None:
        return self.channels.get(channel)

    @property
    def last_updated(self) -> datetime | None:
        """Most recent update across all channels, or ``None`` when empty."""
        if not self.channels:
            return None
        return max(e.timestamp for e in self.channels.values())

    @property
    def is_empty(self) -> bool:
        return not self.channels

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view: channel name -> payload dict."""
        return {
            str(channel): entry.value.model_dump(mode="json")
            for channel, entry in self.channels.items()
        }


class TelemetryCache:
    """Latest telemetry values for one robot, keyed by :class:`Channel`.

    A channel holds a value and a timestamp together or holds nothing; a
    channel is always replaced or cleared as a whole.  All access happens on
    a single event loop, so no locking is done here.
    """

    def __init__(self, robot_id: str) -> None:
        self._robot_id = robot_id
        self._data: dict[Channel, ChannelEntry] = {}

    @property
    def robot_id(self) -> str:
        return self._robot_id

    def set(self, channel: Channel, value: ChannelPayload | None, timestamp: datetime) -> None:
        """Record or overwrite the latest value for *channel*.

        Setting ``None`` is the same as :meth:`clear`.
        """
        if value is None:
            self.clear(channel)
            return
        self._data[channel] = ChannelEntry(value=value, timestamp=timestamp)

    def get(self, channel: Channel) -> ChannelPayload | None:
        """Return the latest value for *channel*, or ``None``."""
        entry = self._data.get(channel)
        return entry.value if entry is not None else None

    def get_entry(self, channel: Channel) -> ChannelEntry | None:
        return self._data.get(channel)

    def clear(self, channel: Channel) -> bool:
        """Drop *channel*; returns ``True`` if it held a value."""
        return self._data.pop(channel, None) is not None

    def present_channels(self) -> list[Channel]:
        return [c for c in Channel if c in self._data]

    def snapshot(self) -> TelemetrySnapshot:
        """Return an immutable copy of the current state."""
        return TelemetrySnapshot(
            robot_id=self._robot_id,
            channels=MappingProxyType(dict(self._data)),
        )

    def seed(self, snapshot: TelemetrySnapshot) -> None:
        """Replace the whole cache with the channels of *snapshot*."""
        self._data = dict(snapshot.channels)

    def age_seconds(self, channel: Channel) -> float | None:
        """Return seconds since *channel* was last updated, or ``None``."""
        entry = self._data.get(channel)
        if entry is None:
            return None
        return time.time() - entry.timestamp.timestamp()

    def __len__(self) -> int:
        return len(self._data)
