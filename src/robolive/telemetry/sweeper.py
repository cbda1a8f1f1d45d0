"""Periodic eviction of stale telemetry channels.

Runs only while the robot's event stream is connected.  Once the stream
drops, the sweeper is stopped so the last known values stay on screen; the
missing connection is itself the staleness signal.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from robolive.models.telemetry import Channel
    from robolive.telemetry.cache import TelemetryCache

logger = logging.getLogger(__name__)

DEFAULT_STALE_TIMEOUT = 2.0
DEFAULT_SWEEP_INTERVAL = 0.5


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StalenessSweeper:
    """Clears channels whose last update is older than their timeout.

    Parameters:
        cache: The cache to prune.
        timeout: Seconds after which any channel is considered stale.
        interval: Seconds between sweeps while running.
        timeouts: Optional per-channel overrides of *timeout*.
        clock: Returns "now"; must be comparable with cache timestamps.
        on_evict: Called with the list of cleared channels after a sweep
            that cleared at least one.
    """

    def __init__(
        self,
        cache: TelemetryCache,
        *,
        timeout: float = DEFAULT_STALE_TIMEOUT,
        interval: float = DEFAULT_SWEEP_INTERVAL,
        timeouts: Mapping[Channel, float] | None = None,
        clock: Callable[[], datetime] = _utcnow,
        on_evict: Callable[[list[Channel]], None] | None = None,
    ) -> None:
        self._cache = cache
        self._timeout = timeout
        self._interval = interval
        self._timeouts = dict(timeouts or {})
        self._clock = clock
        self._on_evict = on_evict
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        task = self._task
        return task is not None and not task.done() and not task.cancelling()

    def timeout_for(self, channel: Channel) -> float:
        return self._timeouts.get(channel, self._timeout)

    def sweep(self, now: datetime | None = None) -> list[Channel]:
        """Evict every channel older than its timeout; return what was cleared.

        A channel exactly at its timeout is kept.
        """
        if now is None:
            now = self._clock()

        evicted: list[Channel] = []
        for channel in self._cache.present_channels():
            entry = self._cache.get_entry(channel)
            if entry is None:
                continue
            age = (now - entry.timestamp).total_seconds()
            if age > self.timeout_for(channel):
                self._cache.clear(channel)
                evicted.append(channel)

        if evicted:
            logger.debug("Evicted stale channels for %s: %s", self._cache.robot_id, evicted)
            if self._on_evict is not None:
                try:
                    self._on_evict(evicted)
                except Exception:
                    logger.warning("Eviction callback failed", exc_info=True)
        return evicted

    def start(self) -> None:
        """Begin sweeping every *interval* seconds on the running loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel the periodic task.  Safe to call when not running."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def aclose(self) -> None:
        """Cancel the periodic task and wait for it to finish."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._task is task:
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.sweep()
