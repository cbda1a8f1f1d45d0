"""Lifecycle of a robot's event-stream WebSocket connection.

State machine::

    idle -> connecting -> connected -> disconnected -> connecting -> ...
                  \\            \\
                   +-> erroring -+-> disconnected

Every close that was not requested through :meth:`ConnectionSupervisor.stop`
schedules a reconnect after a fixed delay.  Retries are unlimited: a
supervisory dashboard is better off retrying than giving up.  ``stop()``
is the only cancellation signal and leaves the supervisor in ``idle``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_RECONNECT_DELAY = 5.0
_OPEN_TIMEOUT = 10.0


class ConnectionState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERRORING = "erroring"


def stream_url(ws_base: str, robot_id: str) -> str:
    """Build the per-robot event-stream URL.

    >>> stream_url("ws://10.0.0.5:8002/", "RB-01")
    'ws://10.0.0.5:8002/ws/robot_message/RB-01/'
    """
    return f"{ws_base.rstrip('/')}/ws/robot_message/{robot_id}/"


async def _websockets_connect(url: str, headers: dict[str, str]) -> Any:
    import websockets.asyncio.client as ws_client

    return await ws_client.connect(url, additional_headers=headers, open_timeout=_OPEN_TIMEOUT)


class ConnectionSupervisor:
    """Keeps one event-stream connection alive until stopped.

    Parameters:
        url: Full WebSocket URL of the robot's stream.
        on_message: Called with every received frame, in arrival order.
        on_state_change: Called after every state transition.
        reconnect_delay: Fixed seconds to wait before reconnecting.
        token: Bearer token sent on the HTTP upgrade, if any.
        connector: ``async (url, headers) -> websocket``; defaults to
            :func:`websockets.asyncio.client.connect`.
    """

    def __init__(
        self,
        url: str,
        *,
        on_message: Callable[[str | bytes], Any],
        on_state_change: Callable[[ConnectionState], None] | None = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        token: str | None = None,
        connector: Callable[[str, dict[str, str]], Awaitable[Any]] | None = None,
    ) -> None:
        self._url = url
        self._on_message = on_message
        self._on_state_change = on_state_change
        self._reconnect_delay = reconnect_delay
        self._token = token
        self._connector = connector or _websockets_connect
        self._state = ConnectionState.IDLE
        self._has_error = False
        self._attempts = 0
        self._manual_close = False
        self._ws: Any = None
        self._task: asyncio.Task[None] | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def has_error(self) -> bool:
        """``True`` from a transport error until the next successful open."""
        return self._has_error

    @property
    def attempts(self) -> int:
        """Connection attempts made since construction."""
        return self._attempts

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Move to ``connecting`` and begin the connect/reconnect loop."""
        if self.running:
            return
        self._manual_close = False
        self._set_state(ConnectionState.CONNECTING)
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Manual close: cancel any pending reconnect and close the socket."""
        self._manual_close = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._close_socket()
        self._set_state(ConnectionState.IDLE)

    # -- internals -------------------------------------------------------------

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        logger.debug("%s: %s -> %s", self._url, self._state, state)
        self._state = state
        if self._on_state_change is not None:
            try:
                self._on_state_change(state)
            except Exception:
                logger.warning("State-change callback failed for %s", self._url, exc_info=True)

    def _fail(self, exc: BaseException) -> None:
        logger.warning("Event stream error for %s: %s", self._url, exc)
        self._has_error = True
        self._set_state(ConnectionState.ERRORING)

    async def _run(self) -> None:
        while not self._manual_close:
            self._set_state(ConnectionState.CONNECTING)
            await self._connect_once()
            if self._manual_close:
                break
            logger.info("Reconnecting to %s in %.1fs", self._url, self._reconnect_delay)
            await asyncio.sleep(self._reconnect_delay)

    async def _connect_once(self) -> None:
        self._attempts += 1
        headers: dict[str, str] = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            self._ws = await self._connector(self._url, headers)
        except Exception as exc:
            self._fail(exc)
            self._set_state(ConnectionState.DISCONNECTED)
            return

        self._has_error = False
        self._set_state(ConnectionState.CONNECTED)
        logger.info("Connected to event stream %s", self._url)

        try:
            async for raw in self._ws:
                self._dispatch(raw)
        except Exception as exc:
            # ConnectionClosedError and other transport failures
            self._fail(exc)
        finally:
            await self._close_socket()
            if not self._manual_close:
                logger.info("Event stream closed: %s", self._url)
                self._set_state(ConnectionState.DISCONNECTED)

    def _dispatch(self, raw: str | bytes) -> None:
        try:
            self._on_message(raw)
        except Exception:
            logger.warning("Message handler failed for %s", self._url, exc_info=True)

    async def _close_socket(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            with contextlib.suppress(Exception):
                await ws.close()
