"""Log entry model — vocabularies, error capture, provenance and wire dict."""

import copy
import datetime
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional


class _Vocabulary(str, Enum):
    """String enum whose members can be looked up by value or name, in any case."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted or member.name.lower() == wanted:
                    return member
        return None


class Category(_Vocabulary):
    ERROR = "Error"
    WARNING = "Warning"
    EVENT = "Event"
    DEBUG = "Debug"


class SeverityLevel(_Vocabulary):
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"
    FINE = "FINE"
    FINER = "FINER"
    FINEST = "FINEST"


class LogType(_Vocabulary):
    BACKEND = "Backend"
    FRONTEND = "Frontend"


class OriginKind(_Vocabulary):
    FRONTEND_MODULE = "FrontendModule"
    FRONTEND_COMPONENT = "FrontendComponent"


@dataclass(frozen=True)
class Provenance:
    origin_kind: OriginKind
    origin_name: str
    origin_function: Optional[str] = None


@dataclass
class ErrorCapture:
    message: Optional[str] = None
    stack: Optional[str] = None
    type_name: Optional[str] = None


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class LogEntry:
    category: Optional[Category] = None
    level: Optional[SeverityLevel] = None
    type: Optional[str] = None
    area: Optional[str] = None
    summary: Optional[str] = None
    details: Optional[str] = None
    record_id: Optional[str] = None
    object_api_name: Optional[str] = None
    transaction_id: Optional[str] = None
    user_id: Optional[str] = None
    duration: Optional[float] = None
    created_timestamp: Optional[datetime.datetime] = field(default_factory=_utc_now)
    error: Optional[ErrorCapture] = None
    provenance: Optional[Provenance] = None
    stack: Optional[str] = None


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


def entry_to_dict(entry: LogEntry) -> dict:
    """Convert a LogEntry to a JSON-ready dict (enum values, ISO timestamps)."""
    return _plain(asdict(entry))


def detach(entry: LogEntry) -> LogEntry:
    """Return an independent deep copy of *entry*."""
    return copy.deepcopy(entry)
