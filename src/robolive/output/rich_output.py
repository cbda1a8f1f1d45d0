from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from rich.console import Group
from rich.panel import Panel
from rich.table import Table

from robolive.models.robot import DEFAULT_MINIMUM_BATTERY_CHARGE
from robolive.models.telemetry import (
    ArmJoints,
    ArmStatusPair,
    BatteryInfo,
    CameraStatus,
    CanStatus,
    Channel,
    JointHealthPair,
    LocationAndCameras,
)
from robolive.telemetry.alerts import format_uptime, is_low_battery
from robolive.telemetry.supervisor import ConnectionState

if TYPE_CHECKING:
    from rich.console import Console, RenderableType

    from robolive.models.robot import Robot
    from robolive.telemetry.cache import TelemetrySnapshot


def _ago(then: datetime, now: datetime) -> str:
    seconds = max(0, int((now - then).total_seconds()))
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    return f"{seconds // 3600}h ago"


def connection_label(
    state: ConnectionState,
    *,
    has_error: bool = False,
    last_updated: datetime | None = None,
    now: datetime | None = None,
) -> str:
    """Short rich-markup label describing a robot's stream."""
    if state == ConnectionState.CONNECTED:
        return "[green]Live[/green]"
    if has_error:
        return "[red]Connection Error[/red]"
    if state == ConnectionState.CONNECTING:
        return "[yellow]Connecting…[/yellow]"
    if last_updated is not None:
        return f"[dim]cached {_ago(last_updated, now or datetime.now(UTC))}[/dim]"
    return "[dim]Offline[/dim]"


def _flag(value: bool, on: str = "OK", off: str = "DOWN") -> str:
    return f"[green]{on}[/green]" if value else f"[red]{off}[/red]"


def _camera(cam: CameraStatus) -> str:
    if not cam.connected:
        return "[red]disconnected[/red]"
    parts = [f"USB {cam.usb_speed}"]
    parts.append("profiles ok" if cam.profiles_ok else "[yellow]profiles ?[/yellow]")
    parts.append("frames ok" if cam.frames_ok else "[yellow]no frames[/yellow]")
    return ", ".join(parts)


class RichOutput:
    """Rich-based terminal output helpers for *robolive*."""

    def __init__(self, console: Console) -> None:
        self._con = console

    # ------------------------------------------------------------------
    # Robots
    # ------------------------------------------------------------------

    def robot_list(self, robots: list[Robot]) -> None:
        """Print a table of robots."""
        table = Table(title="Robots")
        table.add_column("ID", justify="right")
        table.add_column("Robo ID", style="cyan")
        table.add_column("Name")
        table.add_column("Status")
        table.add_column("Battery", justify="right")
        table.add_column("Location")

        for r in robots:
            status_style = "green" if r.is_active else "yellow"
            battery = ""
            if r.battery_level is not None:
                battery = f"{r.battery_level:.0f}%"
                if r.battery_level < r.minimum_battery_charge:
                    battery = f"[red]{battery}[/red]"
            table.add_row(
                str(r.id),
                r.robo_id or "",
                r.name,
                f"[{status_style}]{r.status}[/{status_style}]",
                battery,
                r.location or "",
            )

        self._con.print(table)

    def robot_info(self, robot: Robot) -> None:
        table = Table(title=robot.name or robot.stream_id)
        table.add_column("Field", style="bold")
        table.add_column("Value")

        rows: list[tuple[str, str | None]] = [
            ("ID", str(robot.id)),
            ("Robo ID", robot.robo_id),
            ("Status", robot.status),
            ("Active", "yes" if robot.is_active else "no"),
            ("Local IP", robot.local_ip),
            ("Location", robot.location),
            ("Firmware", robot.firmware_version),
            ("Model", robot.model_number),
            ("Minimum charge", f"{robot.minimum_battery_charge}%"),
            ("Last seen", robot.last_seen),
        ]
        for field, value in rows:
            if value:
                table.add_row(field, value)

        self._con.print(table)

    # ------------------------------------------------------------------
    # Live telemetry
    # ------------------------------------------------------------------

    def telemetry_view(
        self,
        snapshot: TelemetrySnapshot,
        state: ConnectionState,
        *,
        has_error: bool = False,
        title: str | None = None,
        minimum_charge: float = DEFAULT_MINIMUM_BATTERY_CHARGE,
    ) -> RenderableType:
        """Build a panel with every present channel for one robot."""
        label = connection_label(state, has_error=has_error, last_updated=snapshot.last_updated)
        sections: list[RenderableType] = []

        battery = snapshot.get(Channel.BATTERY)
        if isinstance(battery, BatteryInfo):
            sections.append(self._battery_table(battery, snapshot, minimum_charge))

        loc = snapshot.get(Channel.LOCATION_AND_CAMERAS)
        if isinstance(loc, LocationAndCameras):
            table = Table(title="Location & Cameras", show_header=False)
            table.add_column("Field", style="bold")
            table.add_column("Value")
            table.add_row("Location", loc.location)
            table.add_row("Left camera", _camera(loc.left))
            table.add_row("Right camera", _camera(loc.right))
            sections.append(table)

        arm_status = snapshot.get(Channel.ARM_STATUS)
        if isinstance(arm_status, ArmStatusPair):
            sections.append(self._arm_status_table(arm_status))

        joints = snapshot.get(Channel.JOINT_TELEMETRY)
        if isinstance(joints, ArmJoints):
            sections.append(self._joint_table(joints))

        health = snapshot.get(Channel.JOINT_HEALTH)
        if isinstance(health, JointHealthPair):
            sections.append(self._health_table(health))

        can = snapshot.get(Channel.CAN_STATUS)
        if isinstance(can, CanStatus):
            sections.append(f"CAN0 {_flag(can.can0)}  CAN1 {_flag(can.can1)}")

        if not sections:
            sections.append("[dim]No telemetry[/dim]")

        heading = f"[bold]{title or snapshot.robot_id}[/bold]  {label}"
        return Panel(Group(*sections), title=heading, title_align="left")

    def fleet_table(
        self,
        rows: list[tuple[str, TelemetrySnapshot, ConnectionState, bool, float]],
    ) -> Table:
        """One line per robot: ``(name, snapshot, state, has_error, minimum_charge)``."""
        table = Table(title="Fleet")
        table.add_column("Robot", style="cyan")
        table.add_column("Stream")
        table.add_column("Battery", justify="right")
        table.add_column("State")
        table.add_column("Uptime", justify="right")
        table.add_column("Location")
        table.add_column("CAN")

        for name, snapshot, state, has_error, minimum in rows:
            battery = snapshot.get(Channel.BATTERY)
            soc = state_text = uptime = ""
            if isinstance(battery, BatteryInfo):
                soc = f"{battery.soc:.0f}%"
                if is_low_battery(snapshot, minimum):
                    soc = f"[bold red]{soc}[/bold red]"
                state_text = battery.status
                uptime = format_uptime(battery.working_hours)
            loc = snapshot.get(Channel.LOCATION_AND_CAMERAS)
            location = loc.location if isinstance(loc, LocationAndCameras) else ""
            can = snapshot.get(Channel.CAN_STATUS)
            can_text = (
                f"{_flag(can.can0)}/{_flag(can.can1)}" if isinstance(can, CanStatus) else ""
            )
            table.add_row(
                name,
                connection_label(state, has_error=has_error, last_updated=snapshot.last_updated),
                soc,
                state_text,
                uptime,
                location,
                can_text,
            )
        return table

    def cache_entries(self, snapshots: list[TelemetrySnapshot]) -> None:
        """Print the stored fallback snapshots."""
        table = Table(title="Cached Telemetry")
        table.add_column("Robot", style="cyan")
        table.add_column("Channels")
        table.add_column("Last updated")

        now = datetime.now(UTC)
        for snap in snapshots:
            updated = snap.last_updated
            table.add_row(
                snap.robot_id,
                ", ".join(sorted(str(c) for c in snap.channels)),
                _ago(updated, now) if updated is not None else "",
            )

        self._con.print(table)

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    @staticmethod
    def _battery_table(
        battery: BatteryInfo, snapshot: TelemetrySnapshot, minimum_charge: float
    ) -> Table:
        table = Table(title="Battery", show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")

        soc = f"{battery.soc:.0f}%"
        if is_low_battery(snapshot, minimum_charge):
            soc = f"[bold red]{soc} (below {minimum_charge:.0f}%)[/bold red]"
        table.add_row("Charge", soc)
        table.add_row("Status", battery.status)
        table.add_row("Voltage", f"{battery.voltage:.1f} V")
        table.add_row("Current", f"{battery.current:.2f} A")
        table.add_row("Power", f"{battery.power:.1f} W")
        table.add_row("Time remaining", battery.time_remaining)
        table.add_row("Uptime", format_uptime(battery.working_hours))
        return table

    @staticmethod
    def _arm_status_table(pair: ArmStatusPair) -> Table:
        table = Table(title="Arm Status")
        table.add_column("Arm", style="bold")
        table.add_column("Control")
        table.add_column("Status")
        table.add_column("Motion")
        table.add_column("Teach")
        table.add_column("Error", justify="right")
        for side, status in (("left", pair.left), ("right", pair.right)):
            if status is None:
                continue
            err = str(status.error_code)
            if status.error_code:
                err = f"[red]{err}[/red]"
            table.add_row(
                side,
                status.control_mode,
                status.arm_status_text,
                status.motion_status,
                status.teach_mode,
                err,
            )
        return table

    @staticmethod
    def _joint_table(joints: ArmJoints) -> Table:
        table = Table(title="Joints")
        table.add_column("Arm", style="bold")
        table.add_column("Joint", justify="right")
        table.add_column("Position", justify="right")
        table.add_column("Velocity", justify="right")
        table.add_column("Effort", justify="right")
        table.add_column("Temp", justify="right")
        for side, states in (("left", joints.left), ("right", joints.right)):
            for j in states:
                table.add_row(
                    side,
                    str(j.id),
                    f"{j.position:.3f}",
                    f"{j.velocity:.3f}",
                    f"{j.effort:.3f}",
                    f"{j.motor_temperature:.1f}°",
                )
        return table

    @staticmethod
    def _health_table(health: JointHealthPair) -> Table:
        table = Table(title="Joint Health")
        table.add_column("Arm", style="bold")
        table.add_column("Joint", justify="right")
        table.add_column("Limit")
        table.add_column("Comms")
        table.add_column("Motor")
        for side, states in (("left", health.left), ("right", health.right)):
            for h in states:
                table.add_row(
                    side,
                    str(h.id),
                    *(
                        f"[green]{flag}[/green]" if flag == "OK" else f"[red]{flag}[/red]"
                        for flag in (h.limit, h.comms, h.motor)
                    ),
                )
        return table

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def error(self, message: str) -> None:
        """Print a bold red error line."""
        self._con.print(f"[bold red]Error:[/bold red] {message}")

    def info(self, message: str) -> None:
        self._con.print(message)

    def show(self, renderable: RenderableType) -> None:
        self._con.print(renderable)
