"""Keyring-backed token persistence."""

from __future__ import annotations

import contextlib
import json
from typing import Any

import keyring
from keyring.errors import PasswordDeleteError

SERVICE_NAME = "robolive"


class TokenStore:
    """Read / write backend tokens and user identity via the OS keyring."""

    def __init__(self, profile: str = "default") -> None:
        self._profile = profile

    # -- key helpers ---------------------------------------------------------

    def _key(self, name: str) -> str:
        return f"{self._profile}/{name}"

    # -- properties ----------------------------------------------------------

    @property
    def access_token(self) -> str | None:
        """Return the stored access token, or *None*."""
        return keyring.get_password(SERVICE_NAME, self._key("access_token"))

    @property
    def refresh_token(self) -> str | None:
        """Return the stored refresh token, or *None*."""
        return keyring.get_password(SERVICE_NAME, self._key("refresh_token"))

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    @property
    def user(self) -> dict[str, Any] | None:
        """Return the stored user dict (username, email, role), or *None*."""
        raw = keyring.get_password(SERVICE_NAME, self._key("user"))
        if raw is None:
            return None
        result: dict[str, Any] = json.loads(raw)
        return result

    # -- mutators ------------------------------------------------------------

    def save_tokens(self, access_token: str, refresh_token: str) -> None:
        keyring.set_password(SERVICE_NAME, self._key("access_token"), access_token)
        keyring.set_password(SERVICE_NAME, self._key("refresh_token"), refresh_token)

    def save_user(self, user: dict[str, Any]) -> None:
        keyring.set_password(SERVICE_NAME, self._key("user"), json.dumps(user))

    def clear(self) -> None:
        """Delete all stored credentials, ignoring missing entries."""
        for name in ("access_token", "refresh_token", "user"):
            with contextlib.suppress(PasswordDeleteError):
                keyring.delete_password(SERVICE_NAME, self._key(name))
