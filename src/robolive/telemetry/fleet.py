"""One live session per robot for fleet-wide views.

Sessions are fully independent: there is no ordering or dependency between
robots.  :meth:`FleetMonitor.sync` reconciles the set of sessions with the
current robot list (new robots are mounted, removed robots unmounted).
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from robolive.telemetry.cache import TelemetrySnapshot
from robolive.telemetry.notifier import ChangeNotifier
from robolive.telemetry.session import RobotSession
from robolive.telemetry.supervisor import ConnectionState

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from types import TracebackType

    from robolive.telemetry.notifier import ChangeKind

logger = logging.getLogger(__name__)


class FleetMonitor:
    """Owns a :class:`RobotSession` per robot identifier.

    *session_kwargs* are forwarded to every :class:`RobotSession`
    (``ws_url``, ``fallback``, ``token``, timings, ``connector``...).
    """

    def __init__(self, **session_kwargs: Any) -> None:
        self._session_kwargs = session_kwargs
        self._notifier = ChangeNotifier()
        self._sessions: dict[str, RobotSession] = {}

    @property
    def robot_ids(self) -> list[str]:
        return list(self._sessions)

    def session(self, robot_id: str) -> RobotSession | None:
        return self._sessions.get(robot_id)

    def subscribe(self, callback: Callable[[str, ChangeKind], None]) -> Callable[[], None]:
        """Receive ``(robot_id, kind)`` for every change of every robot."""
        return self._notifier.subscribe(callback)

    async def add(self, robot_id: str) -> RobotSession:
        """Mount a session for *robot_id* (no-op if already present)."""
        existing = self._sessions.get(robot_id)
        if existing is not None:
            return existing
        session = RobotSession(robot_id, notifier=self._notifier, **self._session_kwargs)
        self._sessions[robot_id] = session
        await session.mount()
        logger.info("Watching robot %s", robot_id)
        return session

    async def remove(self, robot_id: str) -> bool:
        session = self._sessions.pop(robot_id, None)
        if session is None:
            return False
        await session.unmount()
        logger.info("Stopped watching robot %s", robot_id)
        return True

    async def sync(self, robot_ids: Iterable[str]) -> None:
        """Make the watched set equal to *robot_ids*."""
        wanted = list(dict.fromkeys(robot_ids))
        for robot_id in [r for r in self._sessions if r not in wanted]:
            await self.remove(robot_id)
        for robot_id in wanted:
            await self.add(robot_id)

    def get_snapshot(self, robot_id: str) -> TelemetrySnapshot:
        """Current snapshot for *robot_id*; empty when not watched."""
        session = self._sessions.get(robot_id)
        if session is None:
            return TelemetrySnapshot(robot_id=robot_id)
        return session.snapshot()

    def get_connection_state(self, robot_id: str) -> ConnectionState:
        session = self._sessions.get(robot_id)
        if session is None:
            return ConnectionState.IDLE
        return session.connection_state

    async def close(self) -> None:
        """Unmount every session concurrently."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        await asyncio.gather(*(s.unmount() for s in sessions))

    async def __aenter__(self) -> FleetMonitor:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
