"""Thread-safe dual-queue buffer for pending metrics."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from .models import ClientMetric, MetricKind, MetricRecord


class EventBuffer:
    """Operational and diagnostic FIFO queues sharing one lock.

    ``drain_all`` swaps the whole queue out while holding the lock, so an
    element is returned by exactly one drain.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._queues: Dict[MetricKind, Deque[object]] = {
            MetricKind.OPERATIONAL: deque(),
            MetricKind.DIAGNOSTIC: deque(),
        }

    def add(self, record: MetricRecord) -> None:
        with self._lock:
            self._queues[MetricKind.OPERATIONAL].append(record)

    def add_diagnostic(self, metric: ClientMetric) -> None:
        with self._lock:
            self._queues[MetricKind.DIAGNOSTIC].append(metric)

    def count(self, kind: MetricKind) -> int:
        with self._lock:
            return len(self._queues[kind])

    def drain_all(self, kind: MetricKind) -> Optional[List[object]]:
        """Remove and return every queued item, or ``None`` when empty."""
        with self._lock:
            pending = self._queues[kind]
            if not pending:
                return None
            self._queues[kind] = deque()
        return list(pending)
