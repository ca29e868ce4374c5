"""
In-memory TTL cache for the user service.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from shared.logging import get_logger


@dataclass(frozen=True)
class CacheEntry:
    """Cached value with an absolute expiry on the cache clock."""
    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class MemoryCache:
    """Thread-safe key/value store with absolute per-entry expiry.

    Expired entries are evicted lazily when read and are reported as misses.
    There is no sliding expiration and no background sweep.
    """

    def __init__(self, default_ttl: float = 600.0, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self.logger = get_logger("users.cache")

    def try_get(self, key: str) -> Tuple[bool, Any]:
        """Look up ``key``, returning ``(found, value)``."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_expired(self._clock()):
                del self._entries[key]
                self.logger.debug("Evicted expired entry", key=key)
                entry = None

            if entry is None:
                self._misses += 1
                return False, None

            self._hits += 1
            return True, entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> CacheEntry:
        """Store ``value`` under ``key`` for ``ttl`` seconds (last write wins)."""
        cache_ttl = self.default_ttl if ttl is None else ttl
        entry = CacheEntry(key=key, value=value, expires_at=self._clock() + cache_ttl)
        with self._lock:
            self._entries[key] = entry
        self.logger.debug("Cached value", key=key, ttl=cache_ttl)
        return entry

    def __contains__(self, key: str) -> bool:
        # Membership does not count towards hit/miss stats
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def purge_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "hit_ratio": self._hits / total if total else 0.0,
            }
