"""Fluent builder for a single in-flight log entry."""

import datetime
import logging

from component_logger.models import (
    Category,
    LogEntry,
    SeverityLevel,
    detach,
    entry_to_dict,
)
from component_logger.stack import (
    DEFAULT_MARKERS,
    StackMarkers,
    capture_error,
    capture_stack,
    derive_provenance,
)

logger = logging.getLogger(__name__)

# 1e11 seconds is the year 5138; anything larger is an epoch in milliseconds.
_EPOCH_MS_THRESHOLD = 1e11


def _is_empty(value) -> bool:
    return value is None or value == ""


class LogEntryBuilder:
    """Accumulates one entry's fields and derives its caller provenance.

    The caller's stack is captured when the builder is created, so an
    entry knows where it came from even if no error is ever attached.
    Every setter returns the builder and ignores None / empty values.
    """

    def __init__(
        self,
        category: Category | str | None = None,
        level: SeverityLevel | str | None = None,
        transaction_id: str | None = None,
        stack_text: str | None = None,
        markers: StackMarkers = DEFAULT_MARKERS,
    ):
        self._markers = markers
        self._entry = LogEntry()
        self._apply_stack(stack_text if stack_text is not None else capture_stack())

        self.set_category(category)
        self.set_level(level)
        self.set_transaction_id(transaction_id)

    @property
    def entry(self) -> LogEntry:
        """The live entry being built."""
        return self._entry

    def build(self) -> LogEntry:
        """Return a detached copy of the entry."""
        return detach(self._entry)

    def to_dict(self) -> dict:
        return entry_to_dict(self._entry)

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_category(self, category: Category | str | None) -> "LogEntryBuilder":
        if not _is_empty(category):
            try:
                self._entry.category = Category(category)
            except ValueError:
                logger.warning("Ignoring unknown log category %r", category)
        return self

    def set_level(self, level: SeverityLevel | str | None) -> "LogEntryBuilder":
        if not _is_empty(level):
            try:
                self._entry.level = SeverityLevel(level)
            except ValueError:
                logger.warning("Ignoring unknown severity level %r", level)
        return self

    def set_type(self, type_: str | None) -> "LogEntryBuilder":
        if not _is_empty(type_):
            self._entry.type = str(type_)
        return self

    def set_area(self, area: str | None) -> "LogEntryBuilder":
        if not _is_empty(area):
            self._entry.area = area
        return self

    def set_summary(self, summary: str | None) -> "LogEntryBuilder":
        if not _is_empty(summary):
            self._entry.summary = summary
        return self

    def set_details(self, details: str | None) -> "LogEntryBuilder":
        if not _is_empty(details):
            self._entry.details = details
        return self

    def set_record_id(self, record_id: str | None) -> "LogEntryBuilder":
        if not _is_empty(record_id):
            self._entry.record_id = record_id
        return self

    def set_object_api_name(self, object_api_name: str | None) -> "LogEntryBuilder":
        if not _is_empty(object_api_name):
            self._entry.object_api_name = object_api_name
        return self

    def set_transaction_id(self, transaction_id: str | None) -> "LogEntryBuilder":
        if not _is_empty(transaction_id):
            self._entry.transaction_id = transaction_id
        return self

    def set_user_id(self, user_id: str | None) -> "LogEntryBuilder":
        if not _is_empty(user_id):
            self._entry.user_id = user_id
        return self

    def set_duration(self, duration: float | None) -> "LogEntryBuilder":
        """Elapsed time in milliseconds. Zero is a valid duration."""
        if not _is_empty(duration):
            self._entry.duration = duration
        return self

    def set_created_timestamp(self, timestamp) -> "LogEntryBuilder":
        """Accepts a datetime, an ISO-8601 string or an epoch number.

        Epoch numbers above ``_EPOCH_MS_THRESHOLD`` are taken as
        milliseconds, the unit browsers report (``Date.now()``).
        """
        if _is_empty(timestamp):
            return self

        if isinstance(timestamp, datetime.datetime):
            self._entry.created_timestamp = timestamp
        elif isinstance(timestamp, (int, float)):
            seconds = timestamp / 1000 if abs(timestamp) > _EPOCH_MS_THRESHOLD else timestamp
            try:
                self._entry.created_timestamp = datetime.datetime.fromtimestamp(
                    seconds, tz=datetime.timezone.utc
                )
            except (ValueError, OverflowError, OSError):
                logger.warning("Ignoring out-of-range timestamp %r", timestamp)
        else:
            try:
                self._entry.created_timestamp = datetime.datetime.fromisoformat(str(timestamp))
            except ValueError:
                logger.warning("Ignoring unparseable timestamp %r", timestamp)
        return self

    def set_error(self, error) -> "LogEntryBuilder":
        """Attach an error and re-derive provenance from its stack.

        The last attached error wins. An error without stack text keeps
        whatever provenance the entry already had. The entry's type
        defaults to the error's type name.
        """
        if error is None:
            return self

        capture = capture_error(error)
        self._entry.error = capture
        if self._entry.type is None and capture.type_name:
            self._entry.type = capture.type_name
        self._apply_stack(capture.stack)
        return self

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _apply_stack(self, stack_text: str | None):
        if not stack_text:
            return
        provenance, normalized = derive_provenance(stack_text, self._markers)
        self._entry.provenance = provenance
        self._entry.stack = normalized

    def __repr__(self) -> str:
        entry = self._entry
        return (
            f"LogEntryBuilder(category={entry.category}, level={entry.level}, "
            f"summary={entry.summary!r})"
        )
