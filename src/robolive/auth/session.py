"""Login, token refresh and logout against the fleet backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from robolive.api.errors import AuthError
from robolive.models.auth import (
    LOGIN_PATH,
    LOGOUT_PATH,
    REFRESH_PATH,
    LoginResult,
    TokenPair,
    UserData,
)

if TYPE_CHECKING:
    from robolive.auth.token_store import TokenStore

logger = logging.getLogger(__name__)


def _url(api_url: str, path: str) -> str:
    return f"{api_url.rstrip('/')}{path}"


def _error_message(body: Any, default: str) -> str:
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


async def login(api_url: str, login_id: str, password: str) -> LoginResult:
    """Exchange credentials for a token pair and the user's identity.

    Raises :class:`AuthError` when the backend rejects the credentials or
    answers without both tokens.
    """
    async with httpx.AsyncClient() as client:
        resp = await client.post(
            _url(api_url, LOGIN_PATH),
            json={"login": login_id, "password": password},
        )
    try:
        body: Any = resp.json()
    except ValueError:
        body = {}

    if resp.status_code >= 400 or not isinstance(body, dict) or not body.get("success"):
        raise AuthError(
            _error_message(body, "Invalid credentials"),
            status_code=resp.status_code,
        )

    data: dict[str, Any] = body.get("data") or {}
    if not data.get("access") or not data.get("refresh"):
        raise AuthError("Invalid token response", status_code=resp.status_code)

    return LoginResult(
        tokens=TokenPair(access=data["access"], refresh=data["refresh"]),
        user=UserData(
            username=data.get("username") or "",
            email=data.get("email") or "",
            role=data.get("role") or "USER",
        ),
    )


async def refresh_access_token(api_url: str, refresh_token: str) -> str:
    """Return a fresh access token for *refresh_token*."""
    async with httpx.AsyncClient() as client:
        resp = await client.post(_url(api_url, REFRESH_PATH), json={"refresh": refresh_token})
    if resp.status_code != 200:
        raise AuthError(f"Token refresh failed: {resp.text}", status_code=resp.status_code)
    access = resp.json().get("access")
    if not access:
        raise AuthError("Token refresh response had no access token")
    token: str = access
    return token


async def logout(api_url: str, refresh_token: str | None) -> None:
    """Best-effort server-side logout; network errors are only logged."""
    if not refresh_token:
        return
    try:
        async with httpx.AsyncClient() as client:
            await client.post(_url(api_url, LOGOUT_PATH), json={"refresh": refresh_token})
    except httpx.HTTPError:
        logger.warning("Logout request failed", exc_info=True)


async def login_and_store(
    api_url: str,
    login_id: str,
    password: str,
    token_store: TokenStore,
) -> LoginResult:
    """Log in and persist the tokens and user identity to *token_store*."""
    result = await login(api_url, login_id, password)
    token_store.save_tokens(result.tokens.access, result.tokens.refresh)
    token_store.save_user(result.user.model_dump())
    return result
