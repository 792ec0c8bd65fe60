"""Clocks that drive the flush timer.

``ThreadingClock`` schedules on wall time with daemon ``threading.Timer``
instances. ``SimulatedClock`` keeps a discrete-event queue that only moves
when ``advance`` is called, which keeps timer behaviour deterministic in
tests.
"""

from __future__ import annotations

import heapq
import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Clock(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class ThreadingClock:
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        if delay < 0:
            raise ValueError("Delay must be non-negative")
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


@dataclass(order=True)
class _ScheduledCall:
    scheduled_time: float
    order: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class SimulatedClock:
    """Manually advanced clock with deterministic ordering."""

    def __init__(self, start_time: float = 0.0) -> None:
        self._now = start_time
        self._queue: List[_ScheduledCall] = []
        self._order_counter = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for call in self._queue if not call.cancelled)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        if delay < 0:
            raise ValueError("Delay must be non-negative")
        call = _ScheduledCall(
            scheduled_time=self._now + delay,
            order=next(self._order_counter),
            callback=callback,
        )
        heapq.heappush(self._queue, call)
        return call

    def advance(self, seconds: float) -> int:
        """Move time forward, firing every call that falls due. Returns the number fired."""
        if seconds < 0:
            raise ValueError("Cannot move the clock backwards")
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0].scheduled_time <= target:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._now = call.scheduled_time
            call.callback()
            fired += 1
        self._now = target
        return fired
