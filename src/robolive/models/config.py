from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application-wide settings populated from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ROBOLIVE_",
        extra="ignore",
    )

    api_url: str = "http://localhost:8002/api"
    ws_url: str = "ws://localhost:8002"
    access_token: str | None = None
    refresh_token: str | None = None
    profile: str = "default"
    robot_id: str | None = None
    output_format: str | None = None

    reconnect_delay: float = 5.0
    stale_timeout: float = 2.0
    sweep_interval: float = 0.5
    fleet_refresh_interval: float = 30.0

    cache_enabled: bool = True
    cache_dir: str = "~/.cache/robolive"
