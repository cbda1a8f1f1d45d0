"""CLI commands for the on-disk fallback telemetry cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from robolive.cli._client import get_fallback_cache
from robolive.cli._options import global_options
from robolive.telemetry.supervisor import ConnectionState

if TYPE_CHECKING:
    from robolive.cli.main import AppContext
    from robolive.telemetry.cache import TelemetrySnapshot

cache_group = click.Group("cache", help="Fallback telemetry cache management")


@cache_group.command("show")
@click.argument("robot_positional", required=False, default=None, metavar="ROBOT")
@global_options
def show_cmd(app_ctx: AppContext, robot_positional: str | None) -> None:
    """Show the last telemetry stored for one robot, or for all robots."""
    formatter = app_ctx.formatter
    cache = get_fallback_cache()
    target = robot_positional or app_ctx.robot_id
    robot_ids = [target] if target else cache.entries()

    snapshots: list[TelemetrySnapshot] = []
    for robot_id in robot_ids:
        snap = cache.load(robot_id)
        if snap is not None:
            snapshots.append(snap)

    if formatter.format == "json":
        formatter.output(snapshots, command="cache.show")
    elif not snapshots:
        formatter.rich.info("No cached telemetry.")
    elif target:
        formatter.rich.show(formatter.rich.telemetry_view(snapshots[0], ConnectionState.IDLE))
    else:
        formatter.rich.cache_entries(snapshots)


@cache_group.command("clear")
@click.argument("robot_positional", required=False, default=None, metavar="ROBOT")
@global_options
def clear_cmd(app_ctx: AppContext, robot_positional: str | None) -> None:
    """Clear stored telemetry.

    With a robot ID (argument or --robot) only that robot's entry is removed.
    """
    formatter = app_ctx.formatter
    target = robot_positional or app_ctx.robot_id
    removed = get_fallback_cache().clear(target)

    if formatter.format == "json":
        formatter.output({"cleared": removed, "robot_id": target}, command="cache.clear")
    elif target:
        formatter.rich.info(f"Cleared {removed} cache entries for robot {target}.")
    else:
        formatter.rich.info(f"Cleared {removed} cache entries.")

