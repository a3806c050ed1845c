"""
Tests for ProgressTracker with a controllable clock.
"""

from __future__ import annotations

import pytest

from pinreel.downloader.progress import ProgressTracker, format_bytes


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_known_total(clock):
    tracker = ProgressTracker(total=1000, clock=clock)

    clock.now = 1.0
    info = tracker.update(500)

    assert info.percent == 50
    assert info.speed == pytest.approx(500.0)
    assert info.eta == 1


def test_unknown_total_has_no_percent_or_eta(clock):
    tracker = ProgressTracker(clock=clock)

    clock.now = 2.0
    info = tracker.update(1000)

    assert info.total is None
    assert info.percent is None
    assert info.eta is None
    assert info.speed == pytest.approx(500.0)


def test_speed_is_rolling_average(clock):
    tracker = ProgressTracker(total=10_000, clock=clock)

    transferred = 0
    for step in range(1, 13):
        clock.now = float(step)
        transferred += 100 if step <= 2 else 200
        tracker.update(transferred)

    # Only the ten most recent samples count.
    assert tracker.current().speed == pytest.approx(200.0)


def test_percent_is_capped(clock):
    tracker = ProgressTracker(total=100, clock=clock)

    clock.now = 1.0
    assert tracker.update(150).percent == 100


def test_callbacks_are_notified_and_failures_contained(clock):
    tracker = ProgressTracker(total=100, clock=clock)
    seen = []

    def broken(info):
        raise RuntimeError("callback broke")

    tracker.add_callback(broken)
    tracker.add_callback(seen.append)

    clock.now = 1.0
    tracker.update(40)
    tracker.remove_callback(seen.append)
    tracker.update(60)

    assert [info.transferred for info in seen] == [40]


def test_complete_reports_full_total(clock):
    tracker = ProgressTracker(total=100, clock=clock)

    clock.now = 1.0
    tracker.update(30)
    info = tracker.complete()

    assert info.transferred == 100
    assert info.percent == 100
    assert info.eta == 0


def test_reset(clock):
    tracker = ProgressTracker(total=100, clock=clock)
    clock.now = 1.0
    tracker.update(50)

    tracker.reset(total=0)

    assert tracker.transferred == 0
    assert tracker.total is None
    assert tracker.current().speed == 0.0


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0.0 B"), (1536, "1.5 KB"), (5 * 1024 * 1024, "5.0 MB"), (3 * 1024**3, "3.0 GB")],
)
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected
