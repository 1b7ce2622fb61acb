"""Flush metrics — thread-safe counters for buffer deliveries."""

import threading
import time


class FlushMetrics:
    """Counts delivered and dropped batches for one LogBuffer.

    Updated from the flush worker thread, read from the owning unit of work.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._batches_sent: int = 0
        self._entries_sent: int = 0
        self._batches_failed: int = 0
        self._entries_dropped: int = 0
        self._send_times: list[float] = []
        self._last_error: str | None = None
        self._start_time = time.monotonic()

    def record_sent(self, entry_count: int, send_time_ms: float) -> None:
        with self._lock:
            self._batches_sent += 1
            self._entries_sent += entry_count
            self._send_times.append(send_time_ms)

    def record_failed(self, entry_count: int, error: str) -> None:
        with self._lock:
            self._batches_failed += 1
            self._entries_dropped += entry_count
            self._last_error = error

    def snapshot(self) -> dict:
        """Return a point-in-time snapshot of all counters."""
        with self._lock:
            send_times = list(self._send_times)
            return {
                "batches_sent": self._batches_sent,
                "entries_sent": self._entries_sent,
                "batches_failed": self._batches_failed,
                "entries_dropped": self._entries_dropped,
                "avg_send_time_ms": (
                    sum(send_times) / len(send_times) if send_times else 0.0
                ),
                "last_error": self._last_error,
                "uptime_seconds": time.monotonic() - self._start_time,
            }
