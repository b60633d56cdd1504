"""TTL cache owned by the component that needs it.

Entries are best effort: an expired or evicted entry is simply recomputed by
the owner.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """A cached value and the monotonic time it expires at."""

    value: Any
    expires_at: float


class TTLCache:
    """Key/value cache with per-entry time-to-live.

    Expired entries are dropped when they are accessed or when stats() runs.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            clock: Monotonic time source, in seconds.
        """
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value if present and not expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return default
            return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store a value for ``ttl`` seconds."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def has(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate(self, pattern: str) -> int:
        """Remove entries matching a key or a ``prefix*`` pattern.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            if pattern.endswith("*"):
                prefix = pattern[:-1]
                keys = [k for k in self._entries if k.startswith(prefix)]
            else:
                keys = [pattern] if pattern in self._entries else []
            for key in keys:
                del self._entries[key]
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        """Size and keys of the live entries."""
        with self._lock:
            now = self._clock()
            for key in [k for k, e in self._entries.items() if now >= e.expires_at]:
                del self._entries[key]
            return {"size": len(self._entries), "keys": list(self._entries)}
