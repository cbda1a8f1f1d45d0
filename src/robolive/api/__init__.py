"""REST client for the robot fleet backend."""

from robolive.api.client import RobotApiClient
from robolive.api.errors import ApiError, AuthError, ConfigError, NotFoundError
from robolive.api.robots import RobotAPI

__all__ = ["ApiError", "AuthError", "ConfigError", "NotFoundError", "RobotAPI", "RobotApiClient"]
