"""CLI commands for authentication (login, logout, status)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from robolive._internal.async_utils import run_async
from robolive.auth.session import login_and_store, logout
from robolive.auth.token_store import TokenStore
from robolive.cli._options import global_options
from robolive.models.config import AppSettings

if TYPE_CHECKING:
    from robolive.cli.main import AppContext

auth_group = click.Group("auth", help="Authentication commands")


@auth_group.command("login")
@click.option("--username", "login_id", default=None, help="Username or email")
@click.option("--password", default=None, help="Password (prompted when omitted)")
@global_options
def login_cmd(app_ctx: AppContext, login_id: str | None, password: str | None) -> None:
    """Log in to the fleet backend and store the tokens in the keyring."""
    run_async(_cmd_login(app_ctx, login_id, password))


async def _cmd_login(app_ctx: AppContext, login_id: str | None, password: str | None) -> None:
    formatter = app_ctx.formatter
    settings = AppSettings()
    if not login_id:
        login_id = click.prompt("Username or email")
    if not password:
        password = click.prompt("Password", hide_input=True)

    store = TokenStore(profile=app_ctx.profile)
    result = await login_and_store(settings.api_url, login_id, password, store)

    if formatter.format == "json":
        formatter.output(
            {"user": result.user, "redirect_to": result.redirect_to},
            command="auth.login",
        )
        return

    formatter.rich.info(f"[bold green]Logged in as {result.user.username}[/bold green]")
    formatter.rich.info("")
    formatter.rich.info("Try it out:")
    formatter.rich.info("  [cyan]robolive robot list[/cyan]")


@auth_group.command("logout")
@global_options
def logout_cmd(app_ctx: AppContext) -> None:
    """Invalidate the session and clear stored tokens."""
    run_async(_cmd_logout(app_ctx))


async def _cmd_logout(app_ctx: AppContext) -> None:
    formatter = app_ctx.formatter
    settings = AppSettings()
    store = TokenStore(profile=app_ctx.profile)

    await logout(settings.api_url, store.refresh_token)
    store.clear()

    if formatter.format == "json":
        formatter.output({"status": "logged_out"}, command="auth.logout")
    else:
        formatter.rich.info("Tokens cleared.")


@auth_group.command("status")
@global_options
def status_cmd(app_ctx: AppContext) -> None:
    """Show authentication status."""
    formatter = app_ctx.formatter
    store = TokenStore(profile=app_ctx.profile)
    authenticated = store.is_authenticated
    user = store.user or {}

    if formatter.format == "json":
        formatter.output(
            {
                "authenticated": authenticated,
                "profile": app_ctx.profile,
                "username": user.get("username"),
                "role": user.get("role"),
                "has_refresh_token": store.refresh_token is not None,
            },
            command="auth.status",
        )
        return

    if not authenticated:
        formatter.rich.info("Not logged in.")
        return

    formatter.rich.info(f"Profile:   {app_ctx.profile}")
    if user:
        formatter.rich.info(f"User:      {user.get('username', '')} ({user.get('role', 'USER')})")
    refresh = "yes" if store.refresh_token else "no"
    formatter.rich.info(f"Refresh:   {refresh}")
