import collections
import threading


class EntryStore:
    """Thread-safe in-memory entry storage backed by a bounded deque."""

    def __init__(self, max_size=1000):
        self._entries = collections.deque(maxlen=max_size)
        self._lock = threading.Lock()
        self._total_count = 0
        self._by_transaction = collections.Counter()

    def add(self, entry):
        with self._lock:
            self._entries.append(entry)
            self._total_count += 1
            if entry.get("transaction_id"):
                self._by_transaction[entry["transaction_id"]] += 1

    def get_recent(self, count=50):
        """Return the last `count` entries, most recent first."""
        if count <= 0:
            return []
        with self._lock:
            return list(self._entries)[-count:][::-1]

    def for_transaction(self, transaction_id):
        """Entries of one unit of work still held, in arrival order."""
        with self._lock:
            return [e for e in self._entries if e.get("transaction_id") == transaction_id]

    @property
    def total_count(self):
        """Total number of entries ever added."""
        return self._total_count

    @property
    def current_size(self):
        return len(self._entries)

    @property
    def transaction_count(self):
        return len(self._by_transaction)

    def clear(self):
        with self._lock:
            self._entries.clear()
            self._by_transaction.clear()
            self._total_count = 0
