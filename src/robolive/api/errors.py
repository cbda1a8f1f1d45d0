"""Exception hierarchy for the fleet backend client."""

from __future__ import annotations


class ApiError(Exception):
    """The backend returned an error response."""

    def __init__(self, message: str = "", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(ApiError):
    """Authentication failed or the session could not be refreshed."""


class NotFoundError(ApiError):
    """The requested resource does not exist."""


class ConfigError(Exception):
    """Missing or invalid local configuration (token, robot id, URL)."""
