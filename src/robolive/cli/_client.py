"""Shared helpers for building API clients, fallback caches and robot IDs."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from robolive._internal.robot_id import resolve_robot_id
from robolive.api.client import RobotApiClient
from robolive.api.errors import AuthError, ConfigError
from robolive.api.robots import RobotAPI
from robolive.auth.token_store import TokenStore
from robolive.models.config import AppSettings
from robolive.telemetry.fallback import FallbackCache, FileStorage, MemoryStorage

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from robolive.cli.main import AppContext


def _make_token_refresher(
    store: TokenStore, settings: AppSettings
) -> Callable[[], Awaitable[str | None]] | None:
    """Return an async callback that refreshes the access token, or *None*."""
    refresh_token = settings.refresh_token or store.refresh_token
    if not refresh_token:
        return None

    async def _refresh() -> str | None:
        from robolive.auth.session import refresh_access_token

        try:
            access = await refresh_access_token(settings.api_url, refresh_token)
        except AuthError:
            return None
        store.save_tokens(access, refresh_token)
        return access

    return _refresh


def get_access_token(app_ctx: AppContext, settings: AppSettings | None = None) -> str:
    """Return the access token from the environment or the keyring."""
    settings = settings or AppSettings()
    access_token = settings.access_token or TokenStore(profile=app_ctx.profile).access_token
    if not access_token:
        raise ConfigError(
            "No access token found. Run 'robolive auth login' or set ROBOLIVE_ACCESS_TOKEN."
        )
    return access_token


def get_client(app_ctx: AppContext) -> RobotApiClient:
    """Build an authenticated :class:`RobotApiClient` from settings / token store."""
    settings = AppSettings()
    store = TokenStore(profile=app_ctx.profile)
    return RobotApiClient(
        settings.api_url,
        get_access_token(app_ctx, settings),
        on_token_refresh=_make_token_refresher(store, settings),
    )


def get_robot_api(app_ctx: AppContext) -> tuple[RobotApiClient, RobotAPI]:
    """Build a :class:`RobotApiClient` + :class:`RobotAPI`."""
    client = get_client(app_ctx)
    return client, RobotAPI(client)


def get_fallback_cache(settings: AppSettings | None = None) -> FallbackCache:
    """File-backed fallback cache, or an in-memory one when caching is disabled."""
    settings = settings or AppSettings()
    if not settings.cache_enabled:
        return FallbackCache(MemoryStorage())
    return FallbackCache(FileStorage(Path(settings.cache_dir).expanduser()))


def require_robot_id(app_ctx: AppContext, robot_positional: str | None = None) -> str:
    """Resolve the robot ID or raise a usage error."""
    robot_id = resolve_robot_id(
        robot_positional=robot_positional,
        robot_flag=app_ctx.robot_id,
    )
    if not robot_id:
        raise click.UsageError(
            "No robot specified. Pass it as an argument, use --robot, or set ROBOLIVE_ROBOT_ID."
        )
    return robot_id
