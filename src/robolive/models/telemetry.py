"""Pydantic v2 models for the live telemetry channels of a robot.

Every payload is loss-tolerant: numeric fields coerce to ``0`` when they
are missing or non-numeric, booleans coerce to ``False`` unless the wire
value is a real bool, and strings coerce to ``"Unknown"``.  Partial or
garbled telemetry therefore always validates.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

UNKNOWN = "Unknown"


class Channel(StrEnum):
    """Independently updatable slices of a robot's live state."""

    BATTERY = "battery"
    LOCATION_AND_CAMERAS = "location_and_cameras"
    JOINT_TELEMETRY = "joint_telemetry"
    ARM_STATUS = "arm_status"
    JOINT_HEALTH = "joint_health"
    CAN_STATUS = "can_status"


class ArmSide(StrEnum):
    LEFT = "left"
    RIGHT = "right"


class HealthFlag(StrEnum):
    """Tri-state health indicator reported per joint."""

    OK = "OK"
    ERROR = "ERROR"
    UNKNOWN = "UNKNOWN"


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def coerce_number(value: Any) -> float:
    """Return *value* as a float, or ``0.0`` when it isn't numeric.

    >>> coerce_number("48.2")
    48.2
    >>> coerce_number("n/a")
    0.0
    """
    if isinstance(value, bool):
        return float(value)
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(result):
        return 0.0
    return result


def coerce_int(value: Any) -> int:
    number = coerce_number(value)
    if math.isinf(number):
        return 0
    return int(number)


def coerce_flag(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def coerce_text(value: Any) -> str:
    if isinstance(value, str) and value:
        return value
    return UNKNOWN


def coerce_health(value: Any) -> HealthFlag:
    if isinstance(value, str):
        upper = value.upper()
        if upper == HealthFlag.OK:
            return HealthFlag.OK
        if upper == HealthFlag.ERROR:
            return HealthFlag.ERROR
    return HealthFlag.UNKNOWN


Number = Annotated[float, BeforeValidator(coerce_number)]
Integer = Annotated[int, BeforeValidator(coerce_int)]
Flag = Annotated[bool, BeforeValidator(coerce_flag)]
Text = Annotated[str, BeforeValidator(coerce_text)]
Health = Annotated[HealthFlag, BeforeValidator(coerce_health)]

_WIRE = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Channel payloads
# ---------------------------------------------------------------------------


class BatteryInfo(BaseModel):
    model_config = _WIRE

    soc: Number = 0.0
    voltage: Number = 0.0
    current: Number = 0.0
    power: Number = 0.0
    dod: Number = 0.0
    working_hours: Number = 0.0
    drop_percentage: Number = 0.0

    @property
    def status(self) -> str:
        """Derived pack state: ``charging``, ``full``, ``low`` or ``discharging``."""
        if self.current > 0.5:
            return "charging"
        if self.soc >= 99:
            return "full"
        if self.soc < 20:
            return "low"
        return "discharging"

    @property
    def time_remaining(self) -> str:
        """Rough runtime estimate at 20% per hour."""
        hours = int(self.soc // 20)
        minutes = int((self.soc % 20) * 3)
        return f"{hours}h {minutes}m"


class CameraStatus(BaseModel):
    model_config = _WIRE

    connected: Flag = False
    usb_speed: Text = UNKNOWN
    profiles_ok: Flag = False
    frames_ok: Flag = False


class LocationAndCameras(BaseModel):
    model_config = _WIRE

    location: Text = UNKNOWN
    left: CameraStatus = Field(default_factory=CameraStatus)
    right: CameraStatus = Field(default_factory=CameraStatus)


class JointState(BaseModel):
    model_config = _WIRE

    id: Integer = 0
    position: Number = 0.0
    velocity: Number = 0.0
    effort: Number = 0.0
    motor_temperature: Number = Field(default=0.0, alias="motor_temp")


class ArmJoints(BaseModel):
    model_config = _WIRE

    left: list[JointState] = Field(default_factory=list)
    right: list[JointState] = Field(default_factory=list)


class ArmStatus(BaseModel):
    model_config = _WIRE

    control_mode: Text = Field(default=UNKNOWN, alias="ctrl_mode")
    arm_status_text: Text = Field(default=UNKNOWN, alias="arm_status")
    mode_feed: Text = UNKNOWN
    teach_mode: Text = UNKNOWN
    motion_status: Text = UNKNOWN
    trajectory_num: Integer = 0
    error_code: Integer = Field(default=0, alias="err_code")


class ArmStatusPair(BaseModel):
    model_config = _WIRE

    left: ArmStatus | None = None
    right: ArmStatus | None = None


class JointHealth(BaseModel):
    model_config = _WIRE

    id: Integer = 0
    limit: Health = HealthFlag.UNKNOWN
    comms: Health = HealthFlag.UNKNOWN
    motor: Health = HealthFlag.UNKNOWN

    @property
    def ok(self) -> bool:
        return self.limit == self.comms == self.motor == HealthFlag.OK


class JointHealthPair(BaseModel):
    model_config = _WIRE

    left: list[JointHealth] = Field(default_factory=list)
    right: list[JointHealth] = Field(default_factory=list)


class CanStatus(BaseModel):
    model_config = _WIRE

    can0: Flag = False
    can1: Flag = False


ChannelPayload = (
    BatteryInfo | LocationAndCameras | ArmJoints | ArmStatusPair | JointHealthPair | CanStatus
)

CHANNEL_MODELS: dict[Channel, type[BaseModel]] = {
    Channel.BATTERY: BatteryInfo,
    Channel.LOCATION_AND_CAMERAS: LocationAndCameras,
    Channel.JOINT_TELEMETRY: ArmJoints,
    Channel.ARM_STATUS: ArmStatusPair,
    Channel.JOINT_HEALTH: JointHealthPair,
    Channel.CAN_STATUS: CanStatus,
}
