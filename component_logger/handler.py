"""logging.Handler that turns stdlib log records into buffered entries."""

import logging

from component_logger.buffer import LogBuffer
from component_logger.models import Category, SeverityLevel

_OWN_LOGGERS = "component_logger"


def _classify(levelno: int) -> tuple[Category, SeverityLevel]:
    if levelno >= logging.ERROR:
        return Category.ERROR, SeverityLevel.ERROR
    if levelno >= logging.WARNING:
        return Category.WARNING, SeverityLevel.WARNING
    if levelno >= logging.INFO:
        return Category.EVENT, SeverityLevel.INFO
    if levelno >= logging.DEBUG:
        return Category.DEBUG, SeverityLevel.DEBUG
    return Category.DEBUG, SeverityLevel.FINEST


class BufferHandler(logging.Handler):
    """Buffers every record as an entry; flushes once a record at or above
    *flush_level* arrives.

    Records emitted by this package's own loggers are skipped so that a
    failing flush cannot feed its diagnostics back into the buffer.
    """

    def __init__(self, buffer: LogBuffer, flush_level: int = logging.ERROR, level: int = logging.NOTSET):
        super().__init__(level)
        self._buffer = buffer
        self._flush_level = flush_level

    @property
    def buffer(self) -> LogBuffer:
        return self._buffer

    def emit(self, record: logging.LogRecord):
        if record.name == _OWN_LOGGERS or record.name.startswith(_OWN_LOGGERS + "."):
            return
        try:
            category, level = _classify(record.levelno)
            builder = (
                self._buffer.new_entry(category, level)
                .set_area(record.name)
                .set_summary(record.getMessage())
                .set_created_timestamp(record.created)
            )
            if record.exc_info and record.exc_info[1] is not None:
                builder.set_error(record.exc_info[1])
            if record.levelno >= self._flush_level:
                self._buffer.flush()
        except Exception:
            self.handleError(record)

    def flush(self):
        self.acquire()
        try:
            if len(self._buffer):
                self._buffer.flush()
        finally:
            self.release()
