"""Shared fixtures for telemetry tests: a fixed clock and fake event streams."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

T0 = datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FakeSocket:
    """Async-iterable stand-in for a websockets client connection.

    Yields *frames*, then raises *error* if given.  With ``hold=True`` it
    stays open until :meth:`close` is called; otherwise it ends (a clean
    server-side close).
    """

    def __init__(
        self,
        frames: list[str] | None = None,
        *,
        error: BaseException | None = None,
        hold: bool = False,
    ) -> None:
        self._frames = list(frames or [])
        self._error = error
        self._hold = hold
        self._released = asyncio.Event()
        self.closed = False

    def __aiter__(self) -> FakeSocket:
        return self

    async def __anext__(self) -> str:
        if self._frames:
            return self._frames.pop(0)
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        if self._hold:
            await self._released.wait()
        raise StopAsyncIteration

    async def close(self) -> None:
        self.closed = True
        self._released.set()


class FakeConnector:
    """Hands out scripted sockets (or raises scripted errors) per attempt.

    Once the script runs out every attempt gets a socket that stays open.
    """

    def __init__(self, *outcomes: FakeSocket | BaseException) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[tuple[str, dict[str, str]]] = []
        self.sockets: list[FakeSocket] = []

    async def __call__(self, url: str, headers: dict[str, str]) -> FakeSocket:
        self.calls.append((url, headers))
        outcome = self._outcomes.pop(0) if self._outcomes else FakeSocket(hold=True)
        if isinstance(outcome, BaseException):
            raise outcome
        self.sockets.append(outcome)
        return outcome


def frame(event: str, data: Any) -> str:
    return json.dumps({"event": event, "data": data})


BATTERY_DATA = {
    "soc": 73,
    "voltage": 48.2,
    "current": 1.1,
    "power": 52.8,
    "dod": 12,
    "working_hours": 5.5,
    "drop_percentage": 3,
}


async def wait_until(predicate: Any, timeout: float = 2.0) -> None:
    """Poll *predicate* on the event loop until it is truthy."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fakes() -> Any:
    """Namespace with the fake stream helpers."""

    class _Fakes:
        Socket = FakeSocket
        Connector = FakeConnector
        Clock = FakeClock
        frame = staticmethod(frame)
        wait_until = staticmethod(wait_until)
        battery = BATTERY_DATA
        t0 = T0

    return _Fakes
