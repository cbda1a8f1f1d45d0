"""CLI command for watching live telemetry of one robot or the whole fleet."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import TYPE_CHECKING

import click

from robolive._internal.async_utils import run_async
from robolive.cli._client import (
    get_access_token,
    get_fallback_cache,
    get_robot_api,
    require_robot_id,
)
from robolive.cli._options import global_options
from robolive.models.config import AppSettings
from robolive.models.robot import DEFAULT_MINIMUM_BATTERY_CHARGE
from robolive.telemetry.fleet import FleetMonitor
from robolive.telemetry.notifier import ChangeKind

if TYPE_CHECKING:
    from rich.console import RenderableType

    from robolive.api.robots import RobotAPI
    from robolive.cli.main import AppContext
    from robolive.models.robot import Robot
    from robolive.output.formatter import OutputFormatter

logger = logging.getLogger(__name__)

RENDER_INTERVAL = 0.25


@click.command("watch")
@click.argument("robot_positional", required=False, default=None, metavar="ROBOT")
@click.option("--all", "watch_all", is_flag=True, default=False, help="Watch every active robot")
@click.option(
    "--robo-id",
    default=None,
    help="Stream identifier to subscribe to directly (skips the robot lookup)",
)
@click.option(
    "--duration",
    type=float,
    default=None,
    help="Stop after this many seconds (default: until Ctrl-C)",
)
@global_options
def watch_cmd(
    app_ctx: AppContext,
    robot_positional: str | None,
    watch_all: bool,
    robo_id: str | None,
    duration: float | None,
) -> None:
    """Stream live telemetry for a robot (or the fleet with --all)."""
    if watch_all and (robo_id or robot_positional):
        raise click.UsageError("--all cannot be combined with a robot or --robo-id.")
    run_async(_cmd_watch(app_ctx, robot_positional, watch_all, robo_id, duration))


async def _cmd_watch(
    app_ctx: AppContext,
    robot_positional: str | None,
    watch_all: bool,
    robo_id: str | None,
    duration: float | None,
) -> None:
    formatter = app_ctx.formatter
    settings = AppSettings()
    token = get_access_token(app_ctx, settings)

    if robo_id:
        await _watch(formatter, settings, token, [robo_id], {}, None, duration)
        return

    client, api = get_robot_api(app_ctx)
    try:
        if watch_all:
            robots = await _active_robots(api)
            await _watch(formatter, settings, token, list(robots), robots, api, duration)
        else:
            robot = await api.get_robot(require_robot_id(app_ctx, robot_positional))
            robots = {robot.stream_id: robot}
            await _watch(formatter, settings, token, list(robots), robots, None, duration)
    finally:
        await client.close()


async def _watch(
    formatter: OutputFormatter,
    settings: AppSettings,
    token: str,
    stream_ids: list[str],
    robots: dict[str, Robot],
    fleet_api: RobotAPI | None,
    duration: float | None,
) -> None:
    """Run the monitor; with *fleet_api* the robot list is re-read periodically."""
    monitor = FleetMonitor(
        ws_url=settings.ws_url,
        fallback=get_fallback_cache(settings),
        token=token,
        reconnect_delay=settings.reconnect_delay,
        stale_timeout=settings.stale_timeout,
        sweep_interval=settings.sweep_interval,
    )
    async with monitor:
        await monitor.sync(stream_ids)

        refresher: asyncio.Task[None] | None = None
        if fleet_api is not None:
            refresher = asyncio.create_task(
                _refresh_fleet(fleet_api, monitor, robots, settings.fleet_refresh_interval)
            )
        try:
            await _render_loop(formatter, monitor, robots, fleet_api is not None, duration)
        finally:
            if refresher is not None:
                refresher.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await refresher


async def _active_robots(api: RobotAPI) -> dict[str, Robot]:
    return {r.stream_id: r for r in await api.list_robots(active_only=True)}


async def _refresh_fleet(
    api: RobotAPI,
    monitor: FleetMonitor,
    robots: dict[str, Robot],
    interval: float,
) -> None:
    """Re-read the robot list every *interval* seconds and resync sessions."""
    while True:
        await asyncio.sleep(interval)
        try:
            latest = await _active_robots(api)
        except Exception:
            logger.warning("Robot list refresh failed", exc_info=True)
            continue
        robots.clear()
        robots.update(latest)
        await monitor.sync(latest)


async def _render_loop(
    formatter: OutputFormatter,
    monitor: FleetMonitor,
    robots: dict[str, Robot],
    watch_all: bool,
    duration: float | None,
) -> None:
    dirty = asyncio.Event()
    changed_snapshots: set[str] = set()

    def _on_change(robot_id: str, kind: ChangeKind) -> None:
        if kind == ChangeKind.SNAPSHOT:
            changed_snapshots.add(robot_id)
        dirty.set()

    unsubscribe = monitor.subscribe(_on_change)
    deadline = time.monotonic() + duration if duration is not None else None

    def _expired() -> bool:
        return deadline is not None and time.monotonic() >= deadline

    try:
        if formatter.format == "json":
            while not _expired():
                await _wait(dirty, deadline)
                for robot_id in sorted(changed_snapshots):
                    formatter.output(monitor.get_snapshot(robot_id), command="watch")
                changed_snapshots.clear()
            return

        from rich.live import Live

        with Live(
            _build_view(formatter, monitor, robots, watch_all),
            console=formatter.console,
            refresh_per_second=4,
        ) as live:
            while not _expired():
                await _wait(dirty, deadline)
                live.update(_build_view(formatter, monitor, robots, watch_all))
    finally:
        unsubscribe()


async def _wait(dirty: asyncio.Event, deadline: float | None) -> None:
    """Wait for a change, at most one render interval (or until *deadline*)."""
    timeout = RENDER_INTERVAL
    if deadline is not None:
        timeout = max(0.0, min(timeout, deadline - time.monotonic()))
    with contextlib.suppress(TimeoutError):
        await asyncio.wait_for(dirty.wait(), timeout)
    dirty.clear()


def _build_view(
    formatter: OutputFormatter,
    monitor: FleetMonitor,
    robots: dict[str, Robot],
    watch_all: bool,
) -> RenderableType:
    def _minimum(robot_id: str) -> float:
        robot = robots.get(robot_id)
        return robot.minimum_battery_charge if robot else DEFAULT_MINIMUM_BATTERY_CHARGE

    def _name(robot_id: str) -> str:
        robot = robots.get(robot_id)
        return robot.name if robot and robot.name else robot_id

    if watch_all:
        rows = []
        for robot_id in monitor.robot_ids:
            session = monitor.session(robot_id)
            has_error = session.has_error if session is not None else False
            rows.append(
                (
                    _name(robot_id),
                    monitor.get_snapshot(robot_id),
                    monitor.get_connection_state(robot_id),
                    has_error,
                    _minimum(robot_id),
                )
            )
        return formatter.rich.fleet_table(rows)

    robot_id = monitor.robot_ids[0]
    session = monitor.session(robot_id)
    return formatter.rich.telemetry_view(
        monitor.get_snapshot(robot_id),
        monitor.get_connection_state(robot_id),
        has_error=session.has_error if session is not None else False,
        title=_name(robot_id),
        minimum_charge=_minimum(robot_id),
    )
