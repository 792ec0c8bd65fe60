"""Recurring flush timer."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .clock import Clock, ThreadingClock, TimerHandle

_LOGGER = logging.getLogger(__name__)


class FlushScheduler:
    """Invokes ``callback`` every ``interval`` seconds until stopped.

    Only one timer is ever pending. The next tick is armed before the
    callback runs, so a slow or failing flush does not stall the schedule.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], object],
        *,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("Flush interval must be positive")
        self.interval = interval
        self._callback = callback
        self._clock = clock or ThreadingClock()
        self._logger = logger or _LOGGER
        self._lock = threading.Lock()
        self._handle: Optional[TimerHandle] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._handle = self._clock.call_later(self.interval, self._fire)
        self._logger.debug("Flush timer started (interval=%ss)", self.interval)

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()
        self._logger.debug("Flush timer stopped")

    def _fire(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._handle = self._clock.call_later(self.interval, self._fire)
        try:
            self._callback()
        except Exception:
            self._logger.exception("Scheduled flush failed")
