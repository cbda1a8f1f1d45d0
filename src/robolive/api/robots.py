"""High-level robot API built on top of RobotApiClient."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from robolive.api.errors import ApiError
from robolive.models.robot import Robot

if TYPE_CHECKING:
    from robolive.api.client import RobotApiClient


class RobotAPI:
    """Robot-related API operations (composition over RobotApiClient)."""

    def __init__(self, client: RobotApiClient) -> None:
        self._client = client

    async def list_robots(self, *, active_only: bool = False) -> list[Robot]:
        """Return all robots, optionally only the active ones."""
        data = await self._client.get("/robots/")
        results: dict[str, Any] = data.get("results") or {}
        if results.get("success") is False:
            raise ApiError(results.get("message") or "Robot listing failed")
        raw_list: list[dict[str, Any]] = results.get("data") or []
        robots = [Robot.model_validate(r) for r in raw_list]
        if active_only:
            robots = [r for r in robots if r.is_active]
        return robots

    async def get_robot(self, robot_id: int | str) -> Robot:
        """Fetch a single robot (including ``minimum_battery_charge``)."""
        data = await self._client.get(f"/robots/{robot_id}/")
        raw = data.get("data")
        if not isinstance(raw, dict):
            raise ApiError(f"Unexpected response for robot {robot_id}")
        return Robot.model_validate(raw)
