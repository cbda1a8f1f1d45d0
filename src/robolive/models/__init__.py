from __future__ import annotations

from robolive.models.auth import (
    LOGIN_PATH,
    LOGOUT_PATH,
    REFRESH_PATH,
    LoginResult,
    TokenPair,
    UserData,
)
from robolive.models.config import AppSettings
from robolive.models.robot import DEFAULT_MINIMUM_BATTERY_CHARGE, Robot
from robolive.models.telemetry import (
    CHANNEL_MODELS,
    ArmJoints,
    ArmSide,
    ArmStatus,
    ArmStatusPair,
    BatteryInfo,
    CameraStatus,
    CanStatus,
    Channel,
    ChannelPayload,
    HealthFlag,
    JointHealth,
    JointHealthPair,
    JointState,
    LocationAndCameras,
)

__all__ = [
    # auth
    "LOGIN_PATH",
    "LOGOUT_PATH",
    "REFRESH_PATH",
    "LoginResult",
    "TokenPair",
    "UserData",
    # config
    "AppSettings",
    # robot
    "DEFAULT_MINIMUM_BATTERY_CHARGE",
    "Robot",
    # telemetry
    "CHANNEL_MODELS",
    "ArmJoints",
    "ArmSide",
    "ArmStatus",
    "ArmStatusPair",
    "BatteryInfo",
    "CameraStatus",
    "CanStatus",
    "Channel",
    "ChannelPayload",
    "HealthFlag",
    "JointHealth",
    "JointHealthPair",
    "JointState",
    "LocationAndCameras",
]
