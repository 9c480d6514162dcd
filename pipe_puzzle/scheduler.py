"""Single threaded timer queue advanced by an external clock."""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, List, Tuple


@dataclass
class TimerHandle:
    """Handle to a scheduled callback; cancelled handles never fire."""

    due_ms: int
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class Scheduler:
    """Timers keyed by due time in milliseconds.

    Nothing runs on its own: the owner calls :meth:`advance` with the time that
    has passed (a pygame clock, or a test stepping manually).
    """

    now_ms: int = 0
    _queue: List[Tuple[int, int, TimerHandle]] = field(default_factory=list)
    _counter: "itertools.count[int]" = field(default_factory=itertools.count)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(due_ms=self.now_ms + max(0, int(delay_ms)), callback=callback)
        heapq.heappush(self._queue, (handle.due_ms, next(self._counter), handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def advance(self, elapsed_ms: int) -> int:
        """Move the clock forward and fire every timer that became due.

        Timers scheduled by a callback fire in the same call when they are
        already due.  Returns the number of callbacks run.
        """

        target = self.now_ms + max(0, int(elapsed_ms))
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now_ms = due
            handle.cancelled = True
            handle.callback()
            fired += 1
        self.now_ms = target
        return fired

    def clear(self) -> None:
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()


__all__ = ["Scheduler", "TimerHandle"]
