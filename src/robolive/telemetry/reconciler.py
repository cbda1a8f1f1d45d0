"""Fold tagged event-stream messages into a :class:`TelemetryCache`.

Messages are JSON text frames shaped ``{"event": <tag>, "data": {...}}``.
Each recognised tag maps to exactly one channel; the channel's new value is
built from the event payload (merged with the previous value where the
channel is per-arm or per-camera) and replaces the old value wholesale.
Malformed frames are logged and dropped: the stream is best-effort
telemetry, not a durable log.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from robolive.models.telemetry import (
    ArmJoints,
    ArmSide,
    ArmStatus,
    ArmStatusPair,
    BatteryInfo,
    CameraStatus,
    CanStatus,
    Channel,
    JointHealth,
    JointHealthPair,
    JointState,
    LocationAndCameras,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from robolive.models.telemetry import ChannelPayload
    from robolive.telemetry.cache import TelemetryCache

logger = logging.getLogger(__name__)

EVENT_CHANNELS: dict[str, Channel] = {
    "battery_information": Channel.BATTERY,
    "camera_status_update": Channel.LOCATION_AND_CAMERAS,
    "robot_joint_telemetry": Channel.JOINT_TELEMETRY,
    "robot_arm_status": Channel.ARM_STATUS,
    "robot_joint_status": Channel.JOINT_HEALTH,
    "can_status": Channel.CAN_STATUS,
}


class MalformedMessageError(ValueError):
    """A frame could not be turned into a channel update."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _arm_side(data: dict[str, Any]) -> ArmSide:
    arm = data.get("arm")
    try:
        return ArmSide(arm)
    except ValueError:
        raise MalformedMessageError(f"invalid arm side: {arm!r}") from None


def _items(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """Return the list under *key*, keeping only object entries."""
    raw = data.get(key)
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


def _merge_camera(previous: CameraStatus, incoming: Any) -> CameraStatus:
    """Overlay the non-null fields of *incoming* onto *previous*."""
    if not isinstance(incoming, dict):
        return previous
    merged = previous.model_dump()
    merged.update({k: v for k, v in incoming.items() if k in merged and v is not None})
    return CameraStatus.model_validate(merged)


class StreamReconciler:
    """Consumes raw frames and updates the matching cache channel.

    Parameters:
        cache: The per-robot cache to write into.
        clock: Returns the processing time stamped on each update.
    """

    def __init__(
        self,
        cache: TelemetryCache,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._cache = cache
        self._clock = clock
        self._message_count = 0
        self._dropped_count = 0
        self._builders: dict[Channel, Callable[[dict[str, Any]], ChannelPayload]] = {
            Channel.BATTERY: self._battery,
            Channel.LOCATION_AND_CAMERAS: self._location_and_cameras,
            Channel.JOINT_TELEMETRY: self._joint_telemetry,
            Channel.ARM_STATUS: self._arm_status,
            Channel.JOINT_HEALTH: self._joint_health,
            Channel.CAN_STATUS: self._can_status,
        }

    @property
    def message_count(self) -> int:
        """Frames that produced a channel update."""
        return self._message_count

    @property
    def dropped_count(self) -> int:
        """Frames dropped as malformed."""
        return self._dropped_count

    def on_message(self, raw: str | bytes) -> Channel | None:
        """Apply one frame; return the updated channel or ``None``.

        Never raises: unparseable frames are logged and ignored, and
        unrecognised event tags are skipped silently.
        """
        try:
            event, data = self._parse(raw)
        except MalformedMessageError as exc:
            self._dropped_count += 1
            logger.warning(
                "Dropping malformed telemetry frame for %s: %s", self._cache.robot_id, exc
            )
            return None

        channel = EVENT_CHANNELS.get(event)
        if channel is None:
            logger.debug("Ignoring event %r for %s", event, self._cache.robot_id)
            return None

        try:
            value = self._builders[channel](data)
        except MalformedMessageError as exc:
            self._dropped_count += 1
            logger.warning("Dropping %s event for %s: %s", event, self._cache.robot_id, exc)
            return None

        self._cache.set(channel, value, self._clock())
        self._message_count += 1
        logger.debug("Applied %s -> %s for %s", event, channel, self._cache.robot_id)
        return channel

    @staticmethod
    def _parse(raw: str | bytes) -> tuple[str, dict[str, Any]]:
        try:
            msg = json.loads(raw)
        except (ValueError, TypeError, RecursionError) as exc:
            raise MalformedMessageError(f"not JSON: {exc}") from exc
        if not isinstance(msg, dict):
            raise MalformedMessageError("frame is not an object")
        event = msg.get("event")
        if not isinstance(event, str):
            raise MalformedMessageError("missing event tag")
        data = msg.get("data")
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise MalformedMessageError("data is not an object")
        return event, data

    # -- channel builders ------------------------------------------------------

    def _battery(self, data: dict[str, Any]) -> BatteryInfo:
        return BatteryInfo.model_validate(data)

    def _location_and_cameras(self, data: dict[str, Any]) -> LocationAndCameras:
        previous = self._cache.get(Channel.LOCATION_AND_CAMERAS)
        if not isinstance(previous, LocationAndCameras):
            previous = LocationAndCameras()

        location = data.get("location1")
        if not isinstance(location, str) or not location:
            location = previous.location

        return LocationAndCameras(
            location=location,
            left=_merge_camera(previous.left, data.get("left_camera")),
            right=_merge_camera(previous.right, data.get("right_camera")),
        )

    def _joint_telemetry(self, data: dict[str, Any]) -> ArmJoints:
        side = _arm_side(data)
        previous = self._cache.get(Channel.JOINT_TELEMETRY)
        if not isinstance(previous, ArmJoints):
            previous = ArmJoints()
        joints = [JointState.model_validate(j) for j in _items(data, "joints")]
        return previous.model_copy(update={side.value: joints})

    def _arm_status(self, data: dict[str, Any]) -> ArmStatusPair:
        side = _arm_side(data)
        previous = self._cache.get(Channel.ARM_STATUS)
        if not isinstance(previous, ArmStatusPair):
            previous = ArmStatusPair()
        return previous.model_copy(update={side.value: ArmStatus.model_validate(data)})

    def _joint_health(self, data: dict[str, Any]) -> JointHealthPair:
        side = _arm_side(data)
        previous = self._cache.get(Channel.JOINT_HEALTH)
        if not isinstance(previous, JointHealthPair):
            previous = JointHealthPair()
        joints = [JointHealth.model_validate(j) for j in _items(data, "joints")]
        return previous.model_copy(update={side.value: joints})

    def _can_status(self, data: dict[str, Any]) -> CanStatus:
        return CanStatus.model_validate(data)
