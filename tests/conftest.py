"""Shared fixtures for the whole test suite."""

from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep a developer's real ROBOLIVE_* environment and .env out of the tests."""
    for key in list(os.environ):
        if key.startswith("ROBOLIVE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


class _MemoryKeyring:
    """Dict-backed replacement for the keyring module functions."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> str | None:
        return self.items.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.items[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        from keyring.errors import PasswordDeleteError

        if self.items.pop((service, username), None) is None:
            raise PasswordDeleteError(username)


@pytest.fixture(autouse=True)
def memory_keyring(monkeypatch: pytest.MonkeyPatch) -> _MemoryKeyring:
    """Never touch the developer's real OS keyring."""
    fake = _MemoryKeyring()
    monkeypatch.setattr("keyring.get_password", fake.get_password)
    monkeypatch.setattr("keyring.set_password", fake.set_password)
    monkeypatch.setattr("keyring.delete_password", fake.delete_password)
    return fake
