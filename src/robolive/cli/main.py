"""CLI entry-point: Click command group and dispatch."""

from __future__ import annotations

import dataclasses
import logging

import click

from robolive.api.errors import ApiError, AuthError, ConfigError
from robolive.output.formatter import OutputFormatter

# ---------------------------------------------------------------------------
# Application context (stored in ctx.obj)
# ---------------------------------------------------------------------------


@dataclasses.dataclass
class AppContext:
    """Shared state passed to every Click command via ``@click.pass_obj``."""

    robot_id: str | None
    profile: str
    output_format: str | None
    quiet: bool
    verbose: bool
    _formatter: OutputFormatter | None = dataclasses.field(default=None, repr=False)

    @property
    def formatter(self) -> OutputFormatter:
        if self._formatter is None:
            force = "quiet" if self.quiet else self.output_format
            self._formatter = OutputFormatter(force_format=force)
        return self._formatter


def configure_logging(verbose: bool) -> None:
    """Route log records through rich; DEBUG when *verbose*, else WARNING."""
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=False)],
        force=True,
    )
    # httpx/websockets are chatty at DEBUG
    for name in ("httpx", "httpcore", "websockets"):
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)


# ---------------------------------------------------------------------------
# Root Click group
# ---------------------------------------------------------------------------


@click.group()
@click.option("--robot", "robot_id", default=None, envvar="ROBOLIVE_ROBOT_ID", help="Robot ID")
@click.option("--profile", default="default", help="Credential profile name")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["rich", "json", "quiet"]),
    default=None,
    help="Output format (default: auto-detect)",
)
@click.option("--quiet", is_flag=True, default=False, help="Suppress normal output")
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
@click.pass_context
def cli(
    ctx: click.Context,
    robot_id: str | None,
    profile: str,
    output_format: str | None,
    quiet: bool,
    verbose: bool,
) -> None:
    """Watch live robot telemetry from the fleet backend."""
    configure_logging(verbose)
    ctx.obj = AppContext(
        robot_id=robot_id,
        profile=profile,
        output_format=output_format,
        quiet=quiet,
        verbose=verbose,
    )


# ---------------------------------------------------------------------------
# Register subcommand groups
# ---------------------------------------------------------------------------


def _register_commands() -> None:
    """Import and attach all subcommand groups to the root CLI."""
    from robolive.cli.auth import auth_group
    from robolive.cli.cache import cache_group
    from robolive.cli.robot import robot_group
    from robolive.cli.watch import watch_cmd

    cli.add_command(auth_group)
    cli.add_command(cache_group)
    cli.add_command(robot_group)
    cli.add_command(watch_cmd)


_register_commands()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the appropriate command handler."""
    try:
        cli(args=argv, standalone_mode=False)
    except click.exceptions.Exit as exc:
        raise SystemExit(exc.exit_code) from None
    except click.exceptions.Abort:
        raise SystemExit(1) from None
    except click.exceptions.ClickException as exc:
        exc.show()
        raise SystemExit(exc.exit_code) from None
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except SystemExit:
        raise
    except Exception as exc:
        app_ctx = _extract_app_ctx()
        formatter = app_ctx.formatter if app_ctx else OutputFormatter()
        cmd_name = _get_command_name()

        if not _handle_known_error(exc, formatter, cmd_name):
            formatter.output_error(
                code=type(exc).__name__,
                message=str(exc),
                command=cmd_name,
            )
        raise SystemExit(1) from exc


# ---------------------------------------------------------------------------
# Helpers for error handling
# ---------------------------------------------------------------------------


def _extract_app_ctx() -> AppContext | None:
    ctx = click.get_current_context(silent=True)
    while ctx is not None:
        if isinstance(ctx.obj, AppContext):
            return ctx.obj
        ctx = ctx.parent
    return None


def _get_command_name() -> str:
    """Reconstruct a dotted command name from the Click context chain."""
    ctx = click.get_current_context(silent=True)
    parts: list[str] = []
    while ctx is not None:
        if ctx.info_name and ctx.info_name != "cli":
            parts.append(ctx.info_name)
        ctx = ctx.parent
    return ".".join(reversed(parts)) or "unknown"


def _handle_known_error(exc: Exception, formatter: OutputFormatter, cmd_name: str) -> bool:
    """Print friendly output for well-known errors.

    Returns ``True`` if the error was handled.
    """
    if isinstance(exc, AuthError):
        _show_with_hint(
            formatter,
            cmd_name,
            code="auth_failed",
            message=str(exc) or "Authentication failed.",
            hint="robolive auth login",
        )
        return True
    if isinstance(exc, ConfigError):
        _show_with_hint(
            formatter, cmd_name, code="config_error", message=str(exc), hint=None
        )
        return True
    if isinstance(exc, ApiError):
        code = f"http_{exc.status_code}" if exc.status_code else "api_error"
        _show_with_hint(formatter, cmd_name, code=code, message=str(exc), hint=None)
        return True
    return False


def _show_with_hint(
    formatter: OutputFormatter,
    cmd_name: str,
    *,
    code: str,
    message: str,
    hint: str | None,
) -> None:
    if formatter.format == "json":
        text = f"{message} Run '{hint}'." if hint else message
        formatter.output_error(code=code, message=text, command=cmd_name)
        return

    formatter.rich.error(message)
    if hint:
        formatter.rich.info("")
        formatter.rich.info("Next steps:")
        formatter.rich.info(f"  [cyan]{hint}[/cyan]")
