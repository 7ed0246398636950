"""
scheduler.py – Cooperative timed events for the single-threaded game loop.

Nothing here runs in another thread.  The main loop advances the
scheduler once per frame with the frame's dt; events whose time has come
run on that frame.  Each game session holds one CancelToken; stopping
the session cancels the token so no delayed effect (AI search, card flip,
result banner) ever resolves against a newer session's state.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class CancelToken:
    """Shared cancellation flag for every event of one session."""

    def __init__(self, name: str = ""):
        self.name = name
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class ScheduledEvent:
    """Handle for one pending callback."""

    __slots__ = ("due", "seq", "callback", "token", "_cancelled")

    def __init__(self, due: float, seq: int, callback: Callable[[], None],
                 token: CancelToken | None):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.token = token
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled or (self.token is not None and self.token.cancelled)

    def cancel(self) -> None:
        self._cancelled = True

    def __lt__(self, other: "ScheduledEvent") -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


class Scheduler:
    """Min-heap of timed callbacks driven by frame time.

    Usage:
        scheduler = Scheduler()
        token = CancelToken("connect4")
        scheduler.call_later(0.3, run_search, token)
        # every frame:
        scheduler.advance(dt)
        # on stop:
        token.cancel()
    """

    def __init__(self):
        self.now: float = 0.0
        self._heap: list[ScheduledEvent] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None],
                   token: CancelToken | None = None) -> ScheduledEvent:
        """Run *callback* once, *delay* seconds of frame time from now."""
        event = ScheduledEvent(self.now + max(0.0, delay), next(self._seq), callback, token)
        heapq.heappush(self._heap, event)
        return event

    def advance(self, dt: float) -> int:
        """Move time forward and run every due event; return how many ran."""
        self.now += max(0.0, dt)
        due: list[ScheduledEvent] = []
        while self._heap and self._heap[0].due <= self.now:
            due.append(heapq.heappop(self._heap))

        ran = 0
        for event in due:
            if event.cancelled:
                logger.debug("Discarded cancelled event (token=%s)",
                             event.token.name if event.token else "-")
                continue
            event.callback()
            ran += 1
        return ran

    @property
    def pending(self) -> int:
        """Events still waiting that have not been cancelled."""
        return sum(1 for e in self._heap if not e.cancelled)

    def clear(self) -> None:
        self._heap.clear()
