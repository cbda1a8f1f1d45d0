"""Tests for robolive.api.client: RobotApiClient."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import httpx
import pytest

from robolive.api.client import RobotApiClient
from robolive.api.errors import ApiError, AuthError, NotFoundError

if TYPE_CHECKING:
    from pytest_httpx import HTTPXMock

API = "http://backend.local/api"


@pytest.fixture
def client() -> RobotApiClient:
    return RobotApiClient(API, "tok123")


class TestGetSuccess:
    @pytest.mark.asyncio
    async def test_get_success(self, httpx_mock: HTTPXMock, client: RobotApiClient) -> None:
        payload = {"data": {"id": 1, "name": "Rover"}}
        httpx_mock.add_response(url=f"{API}/robots/1/", json=payload)
        assert await client.get("/robots/1/") == payload

    @pytest.mark.asyncio
    async def test_list_body_is_wrapped(
        self, httpx_mock: HTTPXMock, client: RobotApiClient
    ) -> None:
        httpx_mock.add_response(url=f"{API}/robots/", json=[1, 2])
        assert await client.get("/robots/") == {"data": [1, 2]}

    @pytest.mark.asyncio
    async def test_empty_body(self, httpx_mock: HTTPXMock, client: RobotApiClient) -> None:
        httpx_mock.add_response(url=f"{API}/robots/1/", method="DELETE", status_code=204)
        assert await client.delete("/robots/1/") == {}


class TestHeaders:
    @pytest.mark.asyncio
    async def test_auth_header_sent(self, httpx_mock: HTTPXMock, client: RobotApiClient) -> None:
        httpx_mock.add_response(url=f"{API}/robots/", json={})
        await client.get("/robots/")
        request = httpx_mock.get_requests()[0]
        assert request.headers["authorization"] == "Bearer tok123"
        assert request.headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_post_sends_json(self, httpx_mock: HTTPXMock, client: RobotApiClient) -> None:
        httpx_mock.add_response(url=f"{API}/robots/", method="POST", json={"ok": True})
        await client.post("/robots/", json={"name": "Rover"})
        assert json.loads(httpx_mock.get_requests()[0].content) == {"name": "Rover"}


class TestErrors:
    @pytest.mark.asyncio
    async def test_401_without_refresher(
        self, httpx_mock: HTTPXMock, client: RobotApiClient
    ) -> None:
        httpx_mock.add_response(url=f"{API}/robots/", status_code=401)
        with pytest.raises(AuthError) as exc_info:
            await client.get("/robots/")
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_404(self, httpx_mock: HTTPXMock, client: RobotApiClient) -> None:
        httpx_mock.add_response(url=f"{API}/robots/9/", status_code=404)
        with pytest.raises(NotFoundError):
            await client.get("/robots/9/")

    @pytest.mark.asyncio
    async def test_500(self, httpx_mock: HTTPXMock, client: RobotApiClient) -> None:
        httpx_mock.add_response(url=f"{API}/robots/", status_code=500, text="boom")
        with pytest.raises(ApiError, match="HTTP 500") as exc_info:
            await client.get("/robots/")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_transport_error(self, httpx_mock: HTTPXMock, client: RobotApiClient) -> None:
        httpx_mock.add_exception(httpx.ConnectError("refused"))
        with pytest.raises(ApiError, match="refused"):
            await client.get("/robots/")


class TestTokenRefresh:
    @pytest.mark.asyncio
    async def test_refresh_and_retry_once(self, httpx_mock: HTTPXMock) -> None:
        refresher = AsyncMock(return_value="fresh")
        client = RobotApiClient(API, "stale", on_token_refresh=refresher)
        httpx_mock.add_response(url=f"{API}/robots/", status_code=401)
        httpx_mock.add_response(url=f"{API}/robots/", json={"results": {}})

        assert await client.get("/robots/") == {"results": {}}
        refresher.assert_awaited_once()
        requests = httpx_mock.get_requests()
        assert requests[0].headers["authorization"] == "Bearer stale"
        assert requests[1].headers["authorization"] == "Bearer fresh"
        assert client.access_token == "fresh"

    @pytest.mark.asyncio
    async def test_refresh_failure_raises_auth_error(self, httpx_mock: HTTPXMock) -> None:
        client = RobotApiClient(API, "stale", on_token_refresh=AsyncMock(return_value=None))
        httpx_mock.add_response(url=f"{API}/robots/", status_code=401)
        with pytest.raises(AuthError):
            await client.get("/robots/")

    @pytest.mark.asyncio
    async def test_second_401_is_not_retried(self, httpx_mock: HTTPXMock) -> None:
        refresher = AsyncMock(return_value="fresh")
        client = RobotApiClient(API, "stale", on_token_refresh=refresher)
        httpx_mock.add_response(url=f"{API}/robots/", status_code=401, is_reusable=True)
        with pytest.raises(AuthError):
            await client.get("/robots/")
        assert len(httpx_mock.get_requests()) == 2
