"""Robot identifier resolution."""

from __future__ import annotations

import os


def resolve_robot_id(
    *,
    robot_positional: str | None = None,
    robot_flag: str | None = None,
) -> str | None:
    """Resolve the robot from multiple sources in priority order.

    Resolution: positional arg > --robot flag > ROBOLIVE_ROBOT_ID env > None.
    """
    robot_id = robot_positional
    if not robot_id:
        robot_id = robot_flag
    if not robot_id:
        robot_id = os.environ.get("ROBOLIVE_ROBOT_ID")
    return robot_id or None
