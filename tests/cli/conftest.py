"""Shared fixtures for CLI execution tests."""

from __future__ import annotations

from pathlib import Path

import pytest

API = "http://backend.local/api"


@pytest.fixture()
def cli_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict[str, str]:
    """Set environment variables so the CLI works without real credentials."""
    env = {
        "ROBOLIVE_API_URL": API,
        "ROBOLIVE_WS_URL": "ws://backend.local",
        "ROBOLIVE_ACCESS_TOKEN": "test-token-123",
        "ROBOLIVE_CACHE_DIR": str(tmp_path / "cache"),
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env
