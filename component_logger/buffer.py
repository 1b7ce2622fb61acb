"""Log buffer — the ordered entries of one unit of work, flushed as a batch."""

import logging
import threading
import time
import uuid
from concurrent.futures import Executor, Future, ThreadPoolExecutor

from component_logger.builder import LogEntryBuilder
from component_logger.metrics import FlushMetrics
from component_logger.models import Category, SeverityLevel
from component_logger.sinks import LogSink, create_sink
from component_logger.stack import DEFAULT_MARKERS, StackMarkers
from component_logger.timing import Timings

logger = logging.getLogger(__name__)

_shared_executor: ThreadPoolExecutor | None = None
_shared_lock = threading.Lock()


def _default_executor() -> ThreadPoolExecutor:
    """Single worker shared by all buffers, so deliveries keep flush order.

    ThreadPoolExecutor drains queued work at interpreter exit.
    """
    global _shared_executor
    with _shared_lock:
        if _shared_executor is None:
            _shared_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="log-flush")
        return _shared_executor


def _completed(result: int) -> Future:
    future: Future = Future()
    future.set_result(result)
    return future


class LogBuffer:
    """Collects LogEntryBuilders for one unit of work and ships them in one
    sink call per flush.

    A buffer belongs to a single unit of work and is not thread-safe.
    ``flush()`` takes the entries pending at that moment and empties the
    buffer before delivery starts; entries added afterwards wait for the
    next flush. Delivery runs on a background executor and never raises
    into the caller: failures are logged and the batch is dropped.
    """

    def __init__(
        self,
        sink: LogSink,
        *,
        transaction_id: str | None = None,
        markers: StackMarkers = DEFAULT_MARKERS,
        executor: Executor | None = None,
    ):
        self._sink = sink
        self._owns_sink = False
        self._last_flush: Future | None = None
        self._transaction_id = transaction_id or uuid.uuid4().hex
        self._markers = markers
        self._executor = executor or _default_executor()
        self._entries: list[LogEntryBuilder] = []
        self._metrics = FlushMetrics()
        self.timings = Timings()

    @classmethod
    def from_config(cls, config, sink: LogSink | None = None, **kwargs) -> "LogBuffer":
        """Build a buffer whose sink and stack markers come from a ClientConfig."""
        markers = StackMarkers(
            internal=config.internal_markers,
            module=config.module_marker,
            component=config.component_marker,
        )
        buffer = cls(sink or create_sink(config), markers=markers, **kwargs)
        buffer._owns_sink = sink is None
        return buffer

    # ------------------------------------------------------------------
    # Entry creation
    # ------------------------------------------------------------------

    def new_entry(
        self,
        category: Category | str = Category.ERROR,
        level: SeverityLevel | str | None = None,
    ) -> LogEntryBuilder:
        """Create an entry, append it to the buffer and return it."""
        builder = LogEntryBuilder(
            category=category,
            level=level,
            transaction_id=self._transaction_id,
            markers=self._markers,
        )
        self._entries.append(builder)
        return builder

    def add_error(self) -> LogEntryBuilder:
        return self.new_entry(Category.ERROR, SeverityLevel.ERROR)

    def add_warning(self) -> LogEntryBuilder:
        return self.new_entry(Category.WARNING, SeverityLevel.WARNING)

    def add_debug(self) -> LogEntryBuilder:
        return self.new_entry(Category.DEBUG, SeverityLevel.DEBUG)

    def add_info(self) -> LogEntryBuilder:
        return self.new_entry(Category.EVENT, SeverityLevel.INFO)

    def record_exception(self, error) -> LogEntryBuilder:
        """Error entry with *error* attached; type and provenance come from it."""
        return self.add_error().set_error(error)

    # ------------------------------------------------------------------
    # Save-and-flush shortcuts
    # ------------------------------------------------------------------

    def exception(self, error) -> Future:
        self.record_exception(error)
        return self.flush()

    def error(self, log_type=None, area=None, summary=None, details=None) -> Future:
        return self._save(self.add_error(), log_type, area, summary, details)

    def warning(self, log_type=None, area=None, summary=None, details=None) -> Future:
        return self._save(self.add_warning(), log_type, area, summary, details)

    def debug(self, log_type=None, area=None, summary=None, details=None) -> Future:
        return self._save(self.add_debug(), log_type, area, summary, details)

    def info(self, log_type=None, area=None, summary=None, details=None) -> Future:
        return self._save(self.add_info(), log_type, area, summary, details)

    def _save(self, builder, log_type, area, summary, details) -> Future:
        builder.set_type(log_type).set_area(area).set_summary(summary).set_details(details)
        return self.flush()

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    def flush(self) -> Future:
        """Send every pending entry to the sink in one call and empty the buffer.

        Returns a Future resolving to the number of entries delivered
        (0 when the batch was dropped). Callers are free to ignore it.
        """
        batch, self._entries = self._entries, []
        if not batch:
            return _completed(0)

        try:
            payload = [builder.to_dict() for builder in batch]
        except Exception as exc:
            logger.exception(
                "Dropped batch of %d unserializable entries for transaction %s",
                len(batch), self._transaction_id,
            )
            self._metrics.record_failed(len(batch), str(exc))
            return _completed(0)

        try:
            self._last_flush = self._executor.submit(self._deliver, payload)
            return self._last_flush
        except RuntimeError as exc:
            # executor already shut down, e.g. logging.shutdown() at interpreter exit
            logger.warning("Executor refused flush (%s); delivering %d entries inline", exc, len(payload))
            return _completed(self._deliver(payload))

    def _deliver(self, payload: list[dict]) -> int:
        start = time.monotonic()
        try:
            self._sink.send(payload)
        except Exception as exc:
            logger.exception(
                "Dropped batch of %d entries for transaction %s",
                len(payload), self._transaction_id,
            )
            self._metrics.record_failed(len(payload), str(exc))
            return 0

        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_sent(len(payload), elapsed_ms)
        logger.debug("Flushed batch of %d entries in %.1fms", len(payload), elapsed_ms)
        return len(payload)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def transaction_id(self) -> str:
        return self._transaction_id

    @property
    def pending(self) -> tuple[LogEntryBuilder, ...]:
        """Entries waiting for the next flush, in creation order."""
        return tuple(self._entries)

    @property
    def metrics(self) -> FlushMetrics:
        return self._metrics

    def __len__(self) -> int:
        return len(self._entries)

    def __enter__(self) -> "LogBuffer":
        return self

    def close(self):
        """Flush what is pending, wait for outstanding deliveries and release
        a sink this buffer created."""
        self.flush()
        if self._last_flush is not None:
            # a single-worker executor runs deliveries in submission order
            self._last_flush.result()
        if self._owns_sink:
            self._sink.close()

    def __exit__(self, exc_type, exc, tb):
        if self._owns_sink:
            self.close()
        elif self._entries:
            self.flush()
        return False
