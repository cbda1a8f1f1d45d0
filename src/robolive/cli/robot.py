"""CLI commands for robot metadata (list, info)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from robolive._internal.async_utils import run_async
from robolive.cli._client import get_robot_api, require_robot_id
from robolive.cli._options import global_options

if TYPE_CHECKING:
    from robolive.cli.main import AppContext

robot_group = click.Group("robot", help="Robot metadata commands")


@robot_group.command("list")
@click.option("--active", "active_only", is_flag=True, default=False, help="Only active robots")
@global_options
def list_cmd(app_ctx: AppContext, active_only: bool) -> None:
    """List all robots."""
    run_async(_cmd_list(app_ctx, active_only))


async def _cmd_list(app_ctx: AppContext, active_only: bool) -> None:
    formatter = app_ctx.formatter
    client, api = get_robot_api(app_ctx)
    try:
        robots = await api.list_robots(active_only=active_only)
    finally:
        await client.close()

    if formatter.format == "json":
        formatter.output(robots, command="robot.list")
    else:
        formatter.rich.robot_list(robots)


@robot_group.command("info")
@click.argument("robot_positional", required=False, default=None, metavar="ROBOT")
@global_options
def info_cmd(app_ctx: AppContext, robot_positional: str | None) -> None:
    """Show one robot's metadata."""
    run_async(_cmd_info(app_ctx, robot_positional))


async def _cmd_info(app_ctx: AppContext, robot_positional: str | None) -> None:
    formatter = app_ctx.formatter
    robot_id = require_robot_id(app_ctx, robot_positional)
    client, api = get_robot_api(app_ctx)
    try:
        robot = await api.get_robot(robot_id)
    finally:
        await client.close()

    if formatter.format == "json":
        formatter.output(robot, command="robot.info")
    else:
        formatter.rich.robot_info(robot)
