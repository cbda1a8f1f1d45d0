"""Low-level authenticated HTTP client for the fleet backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from robolive.api.errors import ApiError, AuthError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class RobotApiClient:
    """Bearer-authenticated JSON client.

    On HTTP 401 the request is retried once after *on_token_refresh*
    returns a new access token.  Without a refresher (or when it returns
    ``None``) the 401 surfaces as :class:`AuthError`.
    """

    def __init__(
        self,
        base_url: str,
        access_token: str,
        *,
        on_token_refresh: Callable[[], Awaitable[str | None]] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._access_token = access_token
        self._on_token_refresh = on_token_refresh
        self._http = httpx.AsyncClient(base_url=self._base_url, timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def access_token(self) -> str:
        return self._access_token

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._request("POST", path, json=json)

    async def patch(self, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._request("PATCH", path, json=json)

    async def delete(self, path: str) -> dict[str, Any]:
        return await self._request("DELETE", path)

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> RobotApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # -- internals -------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
        }

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(f"{method} {path} failed: {exc}") from exc

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        resp = await self._send(method, path, **kwargs)

        if resp.status_code == 401 and self._on_token_refresh is not None:
            logger.info("Access token rejected, refreshing")
            new_token = await self._on_token_refresh()
            if new_token:
                self._access_token = new_token
                resp = await self._send(method, path, **kwargs)

        return self._handle(resp, method, path)

    @staticmethod
    def _handle(resp: httpx.Response, method: str, path: str) -> dict[str, Any]:
        if resp.status_code == 401:
            raise AuthError("Authentication failed. Please log in again.", status_code=401)
        if resp.status_code == 404:
            raise NotFoundError(f"{method} {path}: not found", status_code=404)
        if resp.status_code >= 400:
            raise ApiError(
                f"{method} {path} failed (HTTP {resp.status_code}): {resp.text}",
                status_code=resp.status_code,
            )
        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as exc:
            raise ApiError(f"{method} {path}: invalid JSON response") from exc
        if not isinstance(data, dict):
            return {"data": data}
        return data
