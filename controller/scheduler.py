"""
scheduler.py
============
"Call me back in D milliseconds" for the simulation controller.

The controller only needs two operations, so it depends on this small
contract instead of a concrete timer:

  - schedule(delay_ms, callback) -> handle
  - cancel(handle)

QtScheduler backs it with single-shot QTimers on the Qt event loop.
ManualScheduler is a virtual clock that tests advance by hand.
"""
from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Optional, Set, Tuple

from PyQt6.QtCore import QObject, QTimer


class Scheduler:
    """Interface: schedule one callback after a delay, cancel a pending one."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]):
        raise NotImplementedError

    def cancel(self, handle) -> None:
        raise NotImplementedError


# ──────────────────────────────────────────────────────────────────────── #
#  Qt event-loop scheduler                                                  #
# ──────────────────────────────────────────────────────────────────────── #

class QtScheduler(Scheduler):
    """One single-shot QTimer per scheduled callback."""

    def __init__(self, parent: Optional[QObject] = None):
        self._parent = parent
        self._timers: Set[QTimer] = set()   # keeps pending timers alive

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> QTimer:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.timeout.connect(lambda: self._fire(timer, callback))
        self._timers.add(timer)
        timer.start(delay_ms)
        return timer

    def cancel(self, handle: Optional[QTimer]) -> None:
        if handle not in self._timers:
            return
        self._timers.discard(handle)
        handle.stop()
        handle.deleteLater()

    def _fire(self, timer: QTimer, callback: Callable[[], None]) -> None:
        self._timers.discard(timer)
        timer.deleteLater()
        callback()


# ──────────────────────────────────────────────────────────────────────── #
#  Virtual clock (tests, headless stepping)                                 #
# ──────────────────────────────────────────────────────────────────────── #

class ManualScheduler(Scheduler):
    """
    Deterministic scheduler driven by advance().  Nothing fires until the
    virtual clock is moved past a callback's due time.
    """

    def __init__(self):
        self.now_ms: int = 0
        self._seq = itertools.count()
        self._queue: List[Tuple[int, int, Callable[[], None]]] = []
        self._cancelled = set()

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> int:
        handle = next(self._seq)
        heapq.heappush(self._queue, (self.now_ms + delay_ms, handle, callback))
        return handle

    def cancel(self, handle: Optional[int]) -> None:
        # Handles that already fired are no longer queued
        if any(h == handle for _, h, _ in self._queue):
            self._cancelled.add(handle)

    @property
    def pending(self) -> int:
        return sum(1 for _, h, _ in self._queue if h not in self._cancelled)

    def advance(self, ms: int) -> int:
        """Moves the clock forward by *ms*, firing due callbacks in order. Returns how many fired."""
        target = self.now_ms + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, handle, callback = heapq.heappop(self._queue)
            if handle in self._cancelled:
                self._cancelled.discard(handle)
                continue
            self.now_ms = due
            callback()
            fired += 1
        self.now_ms = target
        return fired

    def run_until_idle(self, limit: int = 1000) -> int:
        """Fires pending callbacks (including ones they schedule) until none remain."""
        fired = 0
        while self.pending and fired < limit:
            due = min(d for d, h, _ in self._queue if h not in self._cancelled)
            fired += self.advance(due - self.now_ms)
        return fired
