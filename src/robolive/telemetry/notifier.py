"""Observer registry for snapshot and connection-state changes.

Delivers each change notification to every subscriber, error-isolated: one
subscriber raising does not affect the others.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class ChangeKind(StrEnum):
    SNAPSHOT = "snapshot"
    CONNECTION = "connection"


class ChangeNotifier:
    """Fan-out of ``(robot_id, kind)`` notifications to subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Callable[[str, ChangeKind], None]] = []

    def subscribe(self, callback: Callable[[str, ChangeKind], None]) -> Callable[[], None]:
        """Register *callback*; return a function that unregisters it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def notify(self, robot_id: str, kind: ChangeKind) -> None:
        """Call every subscriber with *robot_id* and *kind*.

        If a subscriber raises, the exception is logged and the remaining
        subscribers are still called.
        """
        for callback in list(self._subscribers):
            try:
                callback(robot_id, kind)
            except Exception:
                logger.warning("Subscriber %s failed for %s", callback, robot_id, exc_info=True)
