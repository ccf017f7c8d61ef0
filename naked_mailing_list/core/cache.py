import time
import threading


class TTLCache:
    """
    In-memory key/value cache where each entry expires ``ttl`` seconds after it
    was set. Entries are grouped so one group can be flushed without touching
    the others. Expired entries are dropped lazily on read.
    """

    def __init__(self, default_ttl=3600, clock=None):
        self.default_ttl = default_ttl
        self._clock = clock or time.monotonic
        self._entries = {}  # {(group, key): (expires_at, value)}
        self._lock = threading.Lock()

    def get(self, key, group='default'):
        """Return the cached value, or None on miss/expiry"""
        with self._lock:
            entry = self._entries.get((group, key))
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[(group, key)]
                return None
            return value

    def set(self, key, value, group='default', ttl=None):
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[(group, key)] = (self._clock() + ttl, value)

    def delete(self, key, group='default'):
        with self._lock:
            return self._entries.pop((group, key), None) is not None

    def flush(self, group=None):
        """Drop every entry, or only those of ``group``"""
        with self._lock:
            if group is None:
                self._entries.clear()
                return
            for entry_key in [k for k in self._entries if k[0] == group]:
                del self._entries[entry_key]

    def __len__(self):
        return len(self._entries)
