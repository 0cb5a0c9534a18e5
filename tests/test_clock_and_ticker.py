import threading

import pytest

from timed_assessment.services.clock import ManualClock, format_remaining, is_time_warning
from timed_assessment.services.ticker import Ticker


def test_manual_clock_advances() -> None:
    clock = ManualClock(start=10.0)
    assert clock.now() == 10.0
    assert clock.advance(2.5) == 12.5
    with pytest.raises(ValueError):
        clock.advance(-1)


def test_format_remaining() -> None:
    assert format_remaining(0) == "00:00"
    assert format_remaining(59) == "00:59"
    assert format_remaining(600) == "10:00"
    assert format_remaining(3600) == "01:00:00"
    assert format_remaining(3725) == "01:02:05"
    assert format_remaining(-5) == "00:00"


def test_time_warning_threshold() -> None:
    assert is_time_warning(300) is True
    assert is_time_warning(301) is False
    assert is_time_warning(10, threshold=5) is False


def test_fire_delivers_to_subscribers() -> None:
    ticker = Ticker()
    hits: list[str] = []
    ticker.subscribe("a", lambda: hits.append("a"))
    ticker.subscribe("b", lambda: hits.append("b"))
    assert ticker.fire() == 2
    ticker.unsubscribe("a")
    ticker.unsubscribe("missing")
    assert ticker.fire() == 1
    assert sorted(hits) == ["a", "b", "b"]


def test_failing_callback_does_not_block_others() -> None:
    ticker = Ticker()
    hits: list[str] = []

    def boom() -> None:
        raise RuntimeError("boom")

    ticker.subscribe("bad", boom)
    ticker.subscribe("good", lambda: hits.append("good"))
    ticker.fire()
    assert hits == ["good"]


def test_callback_may_unsubscribe_itself() -> None:
    ticker = Ticker()
    ticker.subscribe("once", lambda: ticker.unsubscribe("once"))
    ticker.fire()
    assert not ticker.is_subscribed("once")


def test_background_thread_fires_and_stops() -> None:
    ticker = Ticker(interval=0.01)
    fired = threading.Event()
    ticker.subscribe("x", fired.set)
    ticker.start()
    try:
        assert fired.wait(2.0)
        assert ticker.is_running
    finally:
        ticker.stop()
    assert not ticker.is_running
