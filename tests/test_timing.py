"""Tests for component_logger/timing.py."""

from component_logger.timing import Timings


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestTimings:
    def test_elapsed_milliseconds(self):
        clock = FakeClock()
        timings = Timings(clock=clock)
        timings.start("render")
        clock.now += 0.25
        assert timings.end("render") == 250.0

    def test_end_without_start(self):
        assert Timings().end("getContacts") is None

    def test_end_forgets_start(self):
        timings = Timings(clock=FakeClock())
        timings.start("render")
        timings.end("render")
        assert timings.end("render") is None

    def test_zero_elapsed_is_not_none(self):
        timings = Timings(clock=FakeClock())
        timings.start("instant")
        assert timings.end("instant") == 0.0

    def test_running(self):
        timings = Timings(clock=FakeClock())
        timings.start("a")
        timings.start("b")
        timings.end("a")
        assert timings.running() == ["b"]
