"""Metrics engine: buffers telemetry and flushes it to the collector."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from enum import Enum, auto
from typing import Any, List, Mapping, Optional, Sequence

from .auth import Authenticator
from .buffer import EventBuffer
from .clock import Clock
from .config import MetricsConfig
from .context import ClientContext
from .models import (
    ClientEvent,
    ClientMetric,
    DiagnosticEvent,
    DiagnosticOriginTime,
    MediaLine,
    MetricKind,
    MetricRecord,
    SendResult,
    SessionIdentifiers,
    utc_now,
)
from .scheduler import FlushScheduler
from .transport import MetricsClient, Transport

_LOGGER = logging.getLogger(__name__)

MEDIA_QUALITY_EVENT = "client.mediaquality.event"


class EngineState(Enum):
    RUNNING = auto()
    RELEASED = auto()


class MetricsEngine:
    """Collects operational metrics and diagnostic events for batched delivery.

    A flush is triggered every ``flush_interval_seconds`` by the scheduler and
    immediately whenever either queue holds more than ``buffer_limit`` items.
    Every flush drains both queues, diagnostic first, and hands each
    non-empty batch to the transport. Delivery is best effort: failed posts
    are logged and dropped.

    After ``release()`` the engine ignores further calls, logging a warning
    for each one. None of the public methods raise.
    """

    def __init__(
        self,
        authenticator: Optional[Authenticator],
        *,
        transport: Optional[Transport] = None,
        config: Optional[MetricsConfig] = None,
        context: Optional[ClientContext] = None,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
        buffer_limit: Optional[int] = None,
        flush_interval_seconds: Optional[float] = None,
    ) -> None:
        self.config = config or MetricsConfig.default()
        self.authenticator = authenticator
        self.buffer_limit = buffer_limit if buffer_limit is not None else self.config.engine.buffer_limit
        interval = (
            flush_interval_seconds if flush_interval_seconds is not None else self.config.engine.flush_interval_seconds
        )
        if self.buffer_limit < 0:
            raise ValueError("buffer_limit must be non-negative")
        self._owns_transport = transport is None
        self.transport = transport or MetricsClient(authenticator, self.config.transport)
        self.context = context or ClientContext.from_config(self.config.client_info)
        self.ice_media_lines: Optional[List[MediaLine]] = None
        self._logger = logger or _LOGGER
        self._buffer = EventBuffer()
        self._state = EngineState.RUNNING
        self._state_lock = threading.Lock()
        self._scheduler = FlushScheduler(interval, self.flush, clock=clock, logger=self._logger)
        self._scheduler.start()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def scheduler(self) -> FlushScheduler:
        return self._scheduler

    def pending(self, kind: MetricKind) -> int:
        return self._buffer.count(kind)

    def track(self, name: str, data: Mapping[str, str]) -> None:
        try:
            record = MetricRecord(name=name, fields=data)
        except (TypeError, ValueError):
            self._logger.debug("Dropping metric %r with malformed fields", name)
            return
        if not record.is_valid:
            self._logger.debug("Dropping invalid metric %r", name)
            return
        with self._state_lock:
            if self._state is EngineState.RELEASED:
                self._logger.warning("Metrics engine released; ignoring metric %r", name)
                return
            self._buffer.add(record)
        if self._buffer.count(MetricKind.OPERATIONAL) > self.buffer_limit:
            self.flush()

    def report_diagnostic(
        self,
        identifiers: SessionIdentifiers,
        payload: Mapping[str, Any],
        *,
        media_lines: Optional[Sequence[MediaLine]] = None,
    ) -> None:
        """Queue a media-quality diagnostic event built from ``payload``."""
        if not isinstance(identifiers, SessionIdentifiers) or not isinstance(payload, Mapping) or not payload:
            self._logger.debug("Dropping invalid diagnostic event")
            return
        try:
            metric = self._build_diagnostic(identifiers, payload, media_lines)
            metric.to_payload()
        except Exception:
            self._logger.exception("Unable to build diagnostic event")
            return
        with self._state_lock:
            if self._state is EngineState.RELEASED:
                self._logger.warning("Metrics engine released; ignoring diagnostic event")
                return
            self._buffer.add_diagnostic(metric)
        if self._buffer.count(MetricKind.DIAGNOSTIC) > self.buffer_limit:
            self.flush()

    report_media_quality = report_diagnostic

    def flush(self) -> List["Future[SendResult]"]:
        if self._state is EngineState.RELEASED:
            self._logger.warning("Metrics engine released; ignoring flush")
            return []
        return self._drain_and_send()

    def release(self) -> List["Future[SendResult]"]:
        """Flush whatever is buffered, stop the timer and close a transport the engine built. Safe to call twice."""
        with self._state_lock:
            if self._state is EngineState.RELEASED:
                return []
            self._state = EngineState.RELEASED
        futures = self._drain_and_send()
        self._scheduler.stop()
        if self._owns_transport:
            self.transport.close(wait=False)
        self._logger.info("Metrics engine released")
        return futures

    def _build_diagnostic(
        self,
        identifiers: SessionIdentifiers,
        payload: Mapping[str, Any],
        media_lines: Optional[Sequence[MediaLine]],
    ) -> ClientMetric:
        lines = media_lines if media_lines is not None else self.ice_media_lines
        event = ClientEvent(
            name=MEDIA_QUALITY_EVENT,
            identifiers=identifiers,
            can_proceed=True,
            media_lines=list(lines) if lines else None,
            intervals=[dict(payload)],
        )
        now = utc_now()
        diagnostic = DiagnosticEvent(
            origin=self.context.origin_for(event),
            origin_time=DiagnosticOriginTime(triggered=now, sent=now),
            event=event,
        )
        return ClientMetric(event=diagnostic)

    def _drain_and_send(self) -> List["Future[SendResult]"]:
        futures: List["Future[SendResult]"] = []
        for kind in (MetricKind.DIAGNOSTIC, MetricKind.OPERATIONAL):
            try:
                batch = self._buffer.drain_all(kind)
                if batch is None:
                    continue
                self._logger.debug("Flushing %d %s metrics", len(batch), kind.value)
                future = self.transport.send(batch, kind)
            except Exception:
                self._logger.exception("Failed to hand %s batch to transport", kind.value)
                continue
            future.add_done_callback(self._log_outcome)
            futures.append(future)
        return futures

    def _log_outcome(self, future: "Future[SendResult]") -> None:
        if future.cancelled():
            self._logger.warning("Metrics post cancelled")
            return
        exc = future.exception()
        if exc is not None:
            self._logger.error("Failure: post metrics", exc_info=exc)
            return
        result = future.result()
        if result.ok:
            self._logger.debug("Success: post %d %s metrics", result.count, result.kind.value)
        else:
            self._logger.error(
                "Failure: post %d %s metrics (%s)",
                result.count,
                result.kind.value,
                result.error or result.status_code,
            )
