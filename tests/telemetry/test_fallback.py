"""Tests for the durable fallback cache and its storage backends."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from robolive.models.telemetry import (
    ArmJoints,
    BatteryInfo,
    CanStatus,
    Channel,
    JointState,
    LocationAndCameras,
)
from robolive.telemetry.cache import TelemetryCache
from robolive.telemetry.fallback import (
    LAST_UPDATED_KEY,
    FallbackCache,
    FileStorage,
    MemoryStorage,
    fallback_key,
)

NOW_EPOCH = 1_740_830_400.0  # 2025-03-01T12:00:00Z


def _snapshot(clock: Any) -> Any:
    cache = TelemetryCache("RB-01")
    cache.set(Channel.BATTERY, BatteryInfo(soc=73, voltage=48.2), clock.now)
    cache.set(
        Channel.JOINT_TELEMETRY,
        ArmJoints(left=[JointState(id=1, position=0.5, motor_temperature=30)]),
        clock.now,
    )
    return cache.snapshot()


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def fallback(storage: MemoryStorage) -> FallbackCache:
    return FallbackCache(storage, clock=lambda: NOW_EPOCH)


class TestKey:
    def test_key_format(self) -> None:
        assert fallback_key("42") == "robot_42_last_data"


class TestSaveLoad:
    def test_save_writes_channels_and_timestamp(
        self, fallback: FallbackCache, storage: MemoryStorage, clock: Any
    ) -> None:
        assert fallback.save("RB-01", _snapshot(clock)) is True
        raw = storage.get("robot_RB-01_last_data")
        assert raw is not None
        blob = json.loads(raw)
        assert blob[LAST_UPDATED_KEY] == int(NOW_EPOCH * 1000)
        assert blob["battery"]["soc"] == 73
        # wire aliases are kept in storage
        assert blob["joint_telemetry"]["left"][0]["motor_temp"] == 30

    def test_round_trip(self, fallback: FallbackCache, clock: Any) -> None:
        fallback.save("RB-01", _snapshot(clock))
        loaded = fallback.load("RB-01")
        assert loaded is not None
        assert loaded.robot_id == "RB-01"
        assert loaded.get(Channel.BATTERY) == BatteryInfo(soc=73, voltage=48.2)
        joints = loaded.get(Channel.JOINT_TELEMETRY)
        assert isinstance(joints, ArmJoints)
        assert joints.left[0].motor_temperature == 30

    def test_loaded_timestamps_are_last_updated(
        self, fallback: FallbackCache, clock: Any
    ) -> None:
        fallback.save("RB-01", _snapshot(clock))
        loaded = fallback.load("RB-01")
        assert loaded is not None
        expected = datetime.fromtimestamp(NOW_EPOCH, tz=UTC)
        assert loaded.last_updated == expected
        assert {e.timestamp for e in loaded.channels.values()} == {expected}

    def test_absent_channels_stay_absent(self, fallback: FallbackCache, clock: Any) -> None:
        fallback.save("RB-01", _snapshot(clock))
        loaded = fallback.load("RB-01")
        assert loaded is not None
        assert loaded.get(Channel.CAN_STATUS) is None
        assert loaded.get(Channel.LOCATION_AND_CAMERAS) is None

    def test_load_missing_returns_none(self, fallback: FallbackCache) -> None:
        assert fallback.load("nobody") is None

    def test_robots_are_separate(self, fallback: FallbackCache, clock: Any) -> None:
        fallback.save("A", _snapshot(clock))
        assert fallback.load("B") is None

    def test_unknown_channels_skipped(
        self, fallback: FallbackCache, storage: MemoryStorage
    ) -> None:
        storage.set(
            fallback_key("RB-01"),
            json.dumps(
                {
                    "can_status": {"can0": True, "can1": True},
                    "teleport": {"x": 1},
                    LAST_UPDATED_KEY: 1000,
                }
            ),
        )
        loaded = fallback.load("RB-01")
        assert loaded is not None
        assert list(loaded.channels) == [Channel.CAN_STATUS]

    def test_corrupt_entry_returns_none(
        self, fallback: FallbackCache, storage: MemoryStorage
    ) -> None:
        storage.set(fallback_key("RB-01"), "{not json")
        assert fallback.load("RB-01") is None

    def test_partial_payload_is_coerced(
        self, fallback: FallbackCache, storage: MemoryStorage
    ) -> None:
        storage.set(
            fallback_key("RB-01"),
            json.dumps({"location_and_cameras": {"location": "Dock"}, LAST_UPDATED_KEY: 0}),
        )
        loaded = fallback.load("RB-01")
        assert loaded is not None
        loc = loaded.get(Channel.LOCATION_AND_CAMERAS)
        assert isinstance(loc, LocationAndCameras)
        assert loc.location == "Dock"
        assert loc.left.usb_speed == "Unknown"


class TestStorageFailures:
    def test_save_failure_is_swallowed(self, clock: Any) -> None:
        storage = MagicMock()
        storage.set.side_effect = OSError("disk full")
        fallback = FallbackCache(storage)
        assert fallback.save("RB-01", _snapshot(clock)) is False

    def test_load_failure_is_swallowed(self) -> None:
        storage = MagicMock()
        storage.get.side_effect = OSError("denied")
        assert FallbackCache(storage).load("RB-01") is None


class TestClearAndEntries:
    def test_entries_lists_robot_ids(
        self, fallback: FallbackCache, storage: MemoryStorage, clock: Any
    ) -> None:
        fallback.save("A", _snapshot(clock))
        fallback.save("B", _snapshot(clock))
        storage.set("unrelated", "x")
        assert fallback.entries() == ["A", "B"]

    def test_clear_one(self, fallback: FallbackCache, clock: Any) -> None:
        fallback.save("A", _snapshot(clock))
        fallback.save("B", _snapshot(clock))
        assert fallback.clear("A") == 1
        assert fallback.entries() == ["B"]

    def test_clear_all(
        self, fallback: FallbackCache, storage: MemoryStorage, clock: Any
    ) -> None:
        fallback.save("A", _snapshot(clock))
        fallback.save("B", _snapshot(clock))
        storage.set("unrelated", "x")
        assert fallback.clear() == 2
        assert storage.keys() == ["unrelated"]


class TestFileStorage:
    def test_set_get_delete(self, tmp_path: Path) -> None:
        storage = FileStorage(tmp_path / "cache")
        assert storage.get("k") is None
        storage.set("k", "v")
        assert storage.get("k") == "v"
        assert storage.keys() == ["k"]
        assert storage.delete("k") is True
        assert storage.delete("k") is False

    def test_keys_on_missing_dir(self, tmp_path: Path) -> None:
        assert FileStorage(tmp_path / "missing").keys() == []

    def test_fallback_over_files(self, tmp_path: Path, clock: Any) -> None:
        fallback = FallbackCache(FileStorage(tmp_path))
        fallback.save("RB-01", _snapshot(clock))
        assert (tmp_path / "robot_RB-01_last_data.json").exists()
        loaded = FallbackCache(FileStorage(tmp_path)).load("RB-01")
        assert loaded is not None
        assert loaded.get(Channel.BATTERY) == BatteryInfo(soc=73, voltage=48.2)

    def test_can_status_survives_files(self, tmp_path: Path, clock: Any) -> None:
        cache = TelemetryCache("x")
        cache.set(Channel.CAN_STATUS, CanStatus(can0=True), clock.now)
        fallback = FallbackCache(FileStorage(tmp_path))
        fallback.save("x", cache.snapshot())
        loaded = fallback.load("x")
        assert loaded is not None
        assert loaded.get(Channel.CAN_STATUS) == CanStatus(can0=True)

    def test_similar_ids_do_not_share_a_file(self, tmp_path: Path, clock: Any) -> None:
        fallback = FallbackCache(FileStorage(tmp_path))
        battery = TelemetryCache("RB/1")
        battery.set(Channel.BATTERY, BatteryInfo(soc=40), clock.now)
        can = TelemetryCache("RB:1")
        can.set(Channel.CAN_STATUS, CanStatus(can1=True), clock.now)
        fallback.save("RB/1", battery.snapshot())
        fallback.save("RB:1", can.snapshot())

        slash = fallback.load("RB/1")
        colon = fallback.load("RB:1")
        assert slash is not None and colon is not None
        assert set(slash.channels) == {Channel.BATTERY}
        assert set(colon.channels) == {Channel.CAN_STATUS}
        assert fallback.entries() == ["RB/1", "RB:1"]

    def test_keys_round_trip_through_file_names(self, tmp_path: Path) -> None:
        storage = FileStorage(tmp_path)
        storage.set("robot_a b%c_last_data", "{}")
        assert storage.keys() == ["robot_a b%c_last_data"]
        assert storage.delete("robot_a b%c_last_data") is True
