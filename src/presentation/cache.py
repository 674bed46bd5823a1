"""In-memory TTL cache used around (never inside) the render core."""

import os
import time
from typing import Any, Callable, Optional

DEFAULT_CACHE_TTL = int(os.environ.get("RENDER_CACHE_TTL", "300"))
DEFAULT_MAX_ENTRIES = 256


class _CacheEntry:
    """In-memory cache entry with TTL."""

    __slots__ = ("data", "created_at", "ttl")

    def __init__(self, data: Any, created_at: float, ttl: float):
        self.data = data
        self.created_at = created_at
        self.ttl = ttl

    def expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


class TTLCache:
    """Bounded key -> value cache whose entries expire after ttl seconds.

    The clock is injectable so tests can advance time deterministically.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        """Get cached value if not expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            return None
        return entry.data

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        if len(self._entries) >= self.max_entries:
            self._evict(now)
        self._entries[key] = _CacheEntry(value, now, self.ttl)

    def _evict(self, now: float) -> None:
        expired_keys = [key for key, entry in self._entries.items() if entry.expired(now)]
        for key in expired_keys:
            del self._entries[key]
        # Still full: drop the oldest entries (dicts keep insertion order)
        while len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
