"""Per-robot live telemetry session.

A :class:`RobotSession` is what a dashboard view owns while it is mounted:
the telemetry cache, the reconciler feeding it, the staleness sweeper, the
fallback mirror and the connection supervisor, wired together.

1. ``mount()`` seeds the cache from the fallback store (if any), then
   starts the supervisor; the state is ``connecting`` on return.
2. Every frame goes through the reconciler; each applied frame is mirrored
   to the fallback store and announced to subscribers.
3. The sweeper runs only while the supervisor is ``connected``.  Its
   evictions are announced but never written to the fallback store, which
   keeps the last known values for the next visit.
4. ``unmount()`` stops everything; no further transitions occur.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from robolive.telemetry.cache import TelemetryCache
from robolive.telemetry.notifier import ChangeKind, ChangeNotifier
from robolive.telemetry.reconciler import StreamReconciler
from robolive.telemetry.supervisor import (
    DEFAULT_RECONNECT_DELAY,
    ConnectionState,
    ConnectionSupervisor,
    stream_url,
)
from robolive.telemetry.sweeper import (
    DEFAULT_STALE_TIMEOUT,
    DEFAULT_SWEEP_INTERVAL,
    StalenessSweeper,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime
    from types import TracebackType

    from robolive.models.telemetry import Channel
    from robolive.telemetry.cache import TelemetrySnapshot
    from robolive.telemetry.fallback import FallbackCache

logger = logging.getLogger(__name__)


class RobotSession:
    """Live telemetry for one robot, from mount to unmount."""

    def __init__(
        self,
        robot_id: str,
        *,
        ws_url: str,
        fallback: FallbackCache | None = None,
        token: str | None = None,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        stale_timeout: float = DEFAULT_STALE_TIMEOUT,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        connector: Callable[[str, dict[str, str]], Awaitable[Any]] | None = None,
        clock: Callable[[], datetime] | None = None,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self._robot_id = robot_id
        self._fallback = fallback
        self._notifier = notifier or ChangeNotifier()
        self._cache = TelemetryCache(robot_id)

        clock_kw: dict[str, Any] = {"clock": clock} if clock is not None else {}
        self._reconciler = StreamReconciler(self._cache, **clock_kw)
        self._sweeper = StalenessSweeper(
            self._cache,
            timeout=stale_timeout,
            interval=sweep_interval,
            on_evict=self._on_evict,
            **clock_kw,
        )
        self._supervisor = ConnectionSupervisor(
            stream_url(ws_url, robot_id),
            on_message=self._on_message,
            on_state_change=self._on_state_change,
            reconnect_delay=reconnect_delay,
            token=token,
            connector=connector,
        )
        self._mounted = False

    # -- public API ------------------------------------------------------------

    @property
    def robot_id(self) -> str:
        return self._robot_id

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def connection_state(self) -> ConnectionState:
        return self._supervisor.state

    @property
    def has_error(self) -> bool:
        return self._supervisor.has_error

    @property
    def reconciler(self) -> StreamReconciler:
        return self._reconciler

    @property
    def sweeper(self) -> StalenessSweeper:
        return self._sweeper

    @property
    def supervisor(self) -> ConnectionSupervisor:
        return self._supervisor

    def snapshot(self) -> TelemetrySnapshot:
        return self._cache.snapshot()

    def subscribe(self, callback: Callable[[str, ChangeKind], None]) -> Callable[[], None]:
        return self._notifier.subscribe(callback)

    async def mount(self) -> None:
        """Seed from the fallback store and start connecting."""
        if self._mounted:
            return
        self._mounted = True
        if self._fallback is not None:
            cached = self._fallback.load(self._robot_id)
            if cached is not None and not cached.is_empty:
                self._cache.seed(cached)
                logger.info(
                    "Seeded %s from fallback cache (%d channels)",
                    self._robot_id,
                    len(cached.channels),
                )
                self._notifier.notify(self._robot_id, ChangeKind.SNAPSHOT)
        self._supervisor.start()

    async def unmount(self) -> None:
        """Tear down the connection, the sweeper and any pending reconnect."""
        if not self._mounted:
            return
        self._mounted = False
        await self._supervisor.stop()
        await self._sweeper.aclose()

    async def __aenter__(self) -> RobotSession:
        await self.mount()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.unmount()

    # -- callbacks -------------------------------------------------------------

    def _on_message(self, raw: str | bytes) -> None:
        channel = self._reconciler.on_message(raw)
        if channel is None:
            return
        if self._fallback is not None:
            self._fallback.save(self._robot_id, self._cache.snapshot())
        self._notifier.notify(self._robot_id, ChangeKind.SNAPSHOT)

    def _on_evict(self, channels: list[Channel]) -> None:
        self._notifier.notify(self._robot_id, ChangeKind.SNAPSHOT)

    def _on_state_change(self, state: ConnectionState) -> None:
        if state == ConnectionState.CONNECTED:
            self._sweeper.start()
        else:
            self._sweeper.stop()
        self._notifier.notify(self._robot_id, ChangeKind.CONNECTION)
