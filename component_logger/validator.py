"""Checks received component log entries against the entry JSON schema."""

import json
import threading
from collections import Counter

import jsonschema

# key for violations of the entry object itself (missing or extra fields)
_ENTRY_ROOT = "<entry>"


def _field_path(error: jsonschema.ValidationError) -> str:
    """Dotted path of the offending field, e.g. ``provenance.origin_kind``."""
    return ".".join(str(part) for part in error.absolute_path) or _ENTRY_ROOT


class EntryValidator:
    """Validates flushed entry dicts and tallies what senders get wrong.

    Stats count accepted entries per category and rejected fields per
    dotted field path, so a misbehaving client shows up as one hot field
    rather than a pile of messages.
    """

    def __init__(self, schema_path):
        with open(schema_path, "r") as f:
            schema = json.load(f)

        jsonschema.Draft202012Validator.check_schema(schema)
        self._validator = jsonschema.Draft202012Validator(schema)
        self._lock = threading.Lock()
        self.reset_stats()

    def validate(self, entry) -> tuple[bool, list[str]]:
        """Return (is_valid, ["field: message", ...]) for one entry."""
        errors = sorted(self._validator.iter_errors(entry), key=_field_path)

        with self._lock:
            self._total += 1
            if not errors:
                self._categories[entry["category"]] += 1
                return True, []

            self._rejected += 1
            for error in errors:
                self._field_errors[_field_path(error)] += 1

        return False, [f"{_field_path(error)}: {error.message}" for error in errors]

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "total": self._total,
                "valid": self._total - self._rejected,
                "invalid": self._rejected,
                "categories": dict(self._categories),
                "field_errors": dict(self._field_errors),
            }

    def reset_stats(self):
        with self._lock:
            self._total = 0
            self._rejected = 0
            self._categories: Counter = Counter()
            self._field_errors: Counter = Counter()
