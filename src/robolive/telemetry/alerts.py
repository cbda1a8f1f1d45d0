"""Derived indicators shown next to live telemetry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from robolive.models.robot import DEFAULT_MINIMUM_BATTERY_CHARGE
from robolive.models.telemetry import BatteryInfo, Channel

if TYPE_CHECKING:
    from robolive.telemetry.cache import TelemetrySnapshot


def is_low_battery(
    snapshot: TelemetrySnapshot,
    minimum_charge: float = DEFAULT_MINIMUM_BATTERY_CHARGE,
) -> bool:
    """Return ``True`` when the battery channel is present and below *minimum_charge*.

    An absent battery channel is "unknown", not low.
    """
    battery = snapshot.get(Channel.BATTERY)
    if not isinstance(battery, BatteryInfo):
        return False
    return battery.soc < minimum_charge


def format_uptime(working_hours: float) -> str:
    """Render fractional working hours as ``"3h 30m"``.

    >>> format_uptime(3.5)
    '3h 30m'
    >>> format_uptime(0.25)
    '15m'
    """
    hours = int(working_hours)
    minutes = round((working_hours - hours) * 60)
    if minutes == 60:
        hours, minutes = hours + 1, 0
    if hours == 0 and minutes == 0:
        return "0m"
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"
