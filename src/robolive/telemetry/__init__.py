"""Live robot telemetry: cache, reconciler, sweeper, fallback store and supervisor."""

from __future__ import annotations

from robolive.telemetry.alerts import format_uptime, is_low_battery
from robolive.telemetry.cache import ChannelEntry, TelemetryCache, TelemetrySnapshot
from robolive.telemetry.fallback import (
    FallbackCache,
    FileStorage,
    KeyValueStorage,
    MemoryStorage,
    fallback_key,
)
from robolive.telemetry.fleet import FleetMonitor
from robolive.telemetry.notifier import ChangeKind, ChangeNotifier
from robolive.telemetry.reconciler import EVENT_CHANNELS, StreamReconciler
from robolive.telemetry.session import RobotSession
from robolive.telemetry.supervisor import ConnectionState, ConnectionSupervisor, stream_url
from robolive.telemetry.sweeper import StalenessSweeper

__all__ = [
    "EVENT_CHANNELS",
    "ChangeKind",
    "ChangeNotifier",
    "ChannelEntry",
    "ConnectionState",
    "ConnectionSupervisor",
    "FallbackCache",
    "FileStorage",
    "FleetMonitor",
    "KeyValueStorage",
    "MemoryStorage",
    "RobotSession",
    "StalenessSweeper",
    "StreamReconciler",
    "TelemetryCache",
    "TelemetrySnapshot",
    "fallback_key",
    "format_uptime",
    "is_low_battery",
    "stream_url",
]
