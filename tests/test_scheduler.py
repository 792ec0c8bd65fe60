from __future__ import annotations

import logging
import threading

import pytest

from client_metrics.clock import SimulatedClock, ThreadingClock
from client_metrics.scheduler import FlushScheduler


def test_simulated_clock_fires_in_time_then_schedule_order():
    clock = SimulatedClock()
    trace = []

    def record(label: str) -> None:
        trace.append((label, clock.now))

    clock.call_later(0.1, lambda: record("delta"))
    clock.call_later(0.05, lambda: record("alpha"))
    clock.call_later(0.05, lambda: record("beta"))
    cancelled = clock.call_later(0.07, lambda: record("gamma"))
    cancelled.cancel()

    fired = clock.advance(1.0)

    assert fired == 3
    assert [label for label, _ in trace] == ["alpha", "beta", "delta"]
    assert trace[-1][1] == pytest.approx(0.1)
    assert clock.now == pytest.approx(1.0)


def test_simulated_clock_rejects_negative_values():
    clock = SimulatedClock()
    with pytest.raises(ValueError):
        clock.call_later(-1, lambda: None)
    with pytest.raises(ValueError):
        clock.advance(-1)


def test_scheduler_fires_every_interval_until_stopped():
    clock = SimulatedClock()
    ticks = []
    scheduler = FlushScheduler(30, lambda: ticks.append(clock.now), clock=clock)

    scheduler.start()
    clock.advance(95)
    assert ticks == [30, 60, 90]

    scheduler.stop()
    scheduler.stop()
    clock.advance(300)
    assert ticks == [30, 60, 90]
    assert not scheduler.running
    assert clock.pending == 0


def test_scheduler_keeps_a_single_pending_timer():
    clock = SimulatedClock()
    scheduler = FlushScheduler(10, lambda: None, clock=clock)
    scheduler.start()
    scheduler.start()
    assert clock.pending == 1

    clock.advance(50)
    assert clock.pending == 1


def test_stop_before_start_is_a_no_op():
    scheduler = FlushScheduler(10, lambda: None, clock=SimulatedClock())
    scheduler.stop()
    assert not scheduler.running


def test_failing_callback_is_logged_and_timer_survives(caplog):
    clock = SimulatedClock()
    calls = []

    def boom() -> None:
        calls.append(clock.now)
        raise RuntimeError("flush failed")

    scheduler = FlushScheduler(5, boom, clock=clock)
    caplog.set_level(logging.ERROR, logger="client_metrics.scheduler")
    scheduler.start()
    clock.advance(15)

    assert calls == [5, 10, 15]
    assert sum("Scheduled flush failed" in record.getMessage() for record in caplog.records) == 3


def test_callback_stopping_the_scheduler_prevents_further_ticks():
    clock = SimulatedClock()
    ticks = []

    def tick() -> None:
        ticks.append(clock.now)
        scheduler.stop()

    scheduler = FlushScheduler(5, tick, clock=clock)
    scheduler.start()
    clock.advance(60)

    assert ticks == [5]


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        FlushScheduler(0, lambda: None, clock=SimulatedClock())


def test_threading_clock_runs_callback_on_wall_time():
    fired = threading.Event()
    scheduler = FlushScheduler(0.01, fired.set, clock=ThreadingClock())
    scheduler.start()
    try:
        assert fired.wait(2.0)
    finally:
        scheduler.stop()
    assert not scheduler.running
