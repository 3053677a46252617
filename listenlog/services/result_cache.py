"""
Derived Result Cache

In-memory cache for query results computed from the current entry list.
Entries carry no TTL: they stay valid until the owning ActivityCache reloads
the log and clears them.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SUMMARY_PREFIX = "summary:"
SESSIONS_PREFIX = "sessions:"
CALENDAR_PREFIX = "calendar:"


@dataclass
class CachedResult:
    """A single cached value."""

    value: Any
    created_at: float = field(default_factory=time.time)


class ResultCache:
    """
    Thread-safe keyed cache for derived views.

    Features:
    - Size bound with oldest-first eviction
    - Hit/miss tracking for monitoring
    """

    def __init__(self, max_size: int = 256) -> None:
        """
        Initialize the result cache.

        Args:
            max_size: Maximum number of entries to keep in cache
        """
        self._cache: dict[str, CachedResult] = {}
        self._lock = threading.RLock()
        self._max_size = max(1, max_size)
        self._hits = 0
        self._misses = 0

    def _evict_if_needed(self) -> None:
        """Evict oldest entries if cache is too large."""
        if len(self._cache) < self._max_size:
            return

        # Remove oldest 10% of entries
        entries_to_remove = max(1, self._max_size // 10)
        sorted_entries = sorted(self._cache.items(), key=lambda x: x[1].created_at)
        for key, _ in sorted_entries[:entries_to_remove]:
            del self._cache[key]

        logger.debug(f"Evicted {entries_to_remove} cached results due to size limit")

    def get(self, key: str) -> tuple[bool, Any]:
        """
        Get a value from cache.

        Returns:
            Tuple of (hit: bool, value: Any)
        """
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return False, None
            self._hits += 1
            return True, entry.value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            if key not in self._cache:
                self._evict_if_needed()
            self._cache[key] = CachedResult(value=value)

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """Return the cached value for ``key``, computing and storing it on a miss."""
        hit, value = self.get(key)
        if hit:
            logger.debug(f"Result cache hit for {key}")
            return value

        logger.debug(f"Result cache miss for {key}, computing...")
        result = compute()
        self.set(key, result)
        return result

    def invalidate_all(self) -> int:
        """
        Clear the entire cache.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            if count:
                logger.debug(f"Cleared {count} cached results")
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with hit/miss counts and ratios
        """
        with self._lock:
            total = self._hits + self._misses
            hit_ratio = self._hits / total if total > 0 else 0
            return {
                "size": len(self._cache),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_ratio": round(hit_ratio, 4),
                "total_requests": total,
            }
