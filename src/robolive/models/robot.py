from __future__ import annotations

from pydantic import BaseModel, ConfigDict

_EXTRA_ALLOW = ConfigDict(extra="allow")

DEFAULT_MINIMUM_BATTERY_CHARGE = 20


class Robot(BaseModel):
    """A robot as returned by the fleet backend."""

    model_config = _EXTRA_ALLOW

    id: int
    robo_id: str | None = None
    name: str = ""
    local_ip: str | None = None
    is_active: bool = False
    status: str = "offline"
    last_seen: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    battery_level: float | None = None
    location: str | None = None
    firmware_version: str | None = None
    inspection_count: int | None = None
    minimum_battery_charge: int = DEFAULT_MINIMUM_BATTERY_CHARGE
    model_number: str | None = None

    @property
    def stream_id(self) -> str:
        """Identifier used to address the robot's event stream."""
        return self.robo_id or str(self.id)
