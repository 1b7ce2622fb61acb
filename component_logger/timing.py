"""Named stopwatch for timing instrumentation within a unit of work."""

import time


class Timings:
    """Tracks named start marks; ``end`` reports elapsed milliseconds."""

    def __init__(self, clock=time.perf_counter):
        self._clock = clock
        self._starts: dict[str, float] = {}

    def start(self, name: str):
        self._starts[name] = self._clock()

    def end(self, name: str) -> float | None:
        """Elapsed ms since ``start(name)``, or None if it was never started.

        The mark is forgotten, so a second ``end`` returns None.
        """
        started = self._starts.pop(name, None)
        if started is None:
            return None
        return (self._clock() - started) * 1000

    def running(self) -> list[str]:
        return list(self._starts)
