"""Tests for the ``robot`` CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from robolive.cli.main import cli

if TYPE_CHECKING:
    from pytest_httpx import HTTPXMock

API = "http://backend.local/api"

ROBOTS = {
    "results": {
        "success": True,
        "message": "ok",
        "data": [
            {"id": 1, "robo_id": "RB-01", "name": "Rover", "is_active": True},
            {"id": 2, "robo_id": "RB-02", "name": "Crawler", "is_active": False},
        ],
    }
}


class TestRobotList:
    def test_json(self, cli_env: dict[str, str], httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=f"{API}/robots/", json=ROBOTS)
        result = CliRunner().invoke(cli, ["--format", "json", "robot", "list"])
        assert result.exit_code == 0, result.output
        parsed = json.loads(result.output)
        assert parsed["command"] == "robot.list"
        assert [r["robo_id"] for r in parsed["data"]] == ["RB-01", "RB-02"]
        request = httpx_mock.get_requests()[0]
        assert request.headers["authorization"] == "Bearer test-token-123"

    def test_active_only(self, cli_env: dict[str, str], httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=f"{API}/robots/", json=ROBOTS)
        result = CliRunner().invoke(cli, ["robot", "list", "--active", "--format", "json"])
        assert result.exit_code == 0, result.output
        assert [r["id"] for r in json.loads(result.output)["data"]] == [1]

    def test_rich(self, cli_env: dict[str, str], httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=f"{API}/robots/", json=ROBOTS)
        result = CliRunner().invoke(cli, ["--format", "rich", "robot", "list"])
        assert result.exit_code == 0, result.output
        assert "Rover" in result.output
        assert "Crawler" in result.output


class TestRobotInfo:
    def test_positional(self, cli_env: dict[str, str], httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url=f"{API}/robots/1/", json={"data": {"id": 1, "robo_id": "RB-01", "name": "Rover"}}
        )
        result = CliRunner().invoke(cli, ["--format", "json", "robot", "info", "1"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["data"]["name"] == "Rover"

    def test_robot_from_env(self, cli_env: dict[str, str], httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=f"{API}/robots/7/", json={"data": {"id": 7}})
        result = CliRunner().invoke(
            cli, ["--format", "json", "robot", "info"], env={"ROBOLIVE_ROBOT_ID": "7"}
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["data"]["id"] == 7

    def test_missing_robot_is_usage_error(self, cli_env: dict[str, str]) -> None:
        result = CliRunner().invoke(cli, ["--format", "json", "robot", "info"])
        assert result.exit_code == 2
        assert "No robot specified" in result.output
