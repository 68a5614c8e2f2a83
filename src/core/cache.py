"""Generic LRU cache with TTL, statistics and single-flight fills.

Templates are immutable at rest, so the cache is read-mostly: each key is
filled by exactly one loader at a time and every other caller for that key
waits for the fill instead of hitting the backing store again. The internal
lock only guards the dictionary; it is never held while a loader runs.
"""

import threading
import time
from typing import Generic, TypeVar, Any, Callable
from collections import OrderedDict
from dataclasses import dataclass

from .hash import hash_string, Algorithm

T = TypeVar("T")


@dataclass
class Stats:
    """Cache statistics."""

    size: int = 0
    max_size: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    fills: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate (0.0 to 1.0)."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Export as dictionary."""
        return {
            "size": self.size,
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "fills": self.fills,
            "hit_rate": self.hit_rate,
        }


class LRUCache(Generic[T]):
    """
    Thread-safe LRU cache with TTL support and statistics tracking.

    Examples:
        >>> cache = LRUCache[str](max_size=100, ttl_seconds=3600)
        >>> cache.set("key", "value")
        >>> cache.get("key")
        'value'
        >>> cache.stats.hit_rate
        1.0
    """

    def __init__(
        self,
        max_size: int = 100,
        ttl_seconds: int | None = None,
        hash_algorithm: Algorithm = Algorithm.XXHASH64,
    ):
        """
        Initialize LRU cache.

        Args:
            max_size: Maximum number of entries
            ttl_seconds: Time-to-live in seconds (None = no expiration)
            hash_algorithm: Algorithm for computing cache keys
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.hash_algorithm = hash_algorithm

        # hashed key -> (value, stored at, original key)
        self._cache: OrderedDict[str, tuple[T, float, str]] = OrderedDict()
        self._stats = Stats(max_size=max_size)
        self._lock = threading.Lock()
        self._inflight: dict[str, threading.Event] = {}

    def _compute_key(self, key: str) -> str:
        return hash_string(key, self.hash_algorithm, truncate=16)

    def _is_expired(self, timestamp: float) -> bool:
        if self.ttl_seconds is None:
            return False
        return time.time() - timestamp >= self.ttl_seconds

    def _lookup(self, cache_key: str) -> tuple[bool, T | None]:
        """Find a live entry. Caller holds the lock."""
        entry = self._cache.get(cache_key)
        if entry is None:
            return False, None

        value, timestamp, _ = entry
        if self._is_expired(timestamp):
            del self._cache[cache_key]
            self._stats.size = len(self._cache)
            return False, None

        self._cache.move_to_end(cache_key)
        return True, value

    def _store(self, cache_key: str, key: str, value: T) -> None:
        """Insert an entry. Caller holds the lock."""
        if cache_key in self._cache:
            del self._cache[cache_key]

        self._cache[cache_key] = (value, time.time(), key)

        if len(self._cache) > self.max_size:
            self._cache.popitem(last=False)
            self._stats.evictions += 1

        self._stats.size = len(self._cache)

    def get(self, key: str) -> T | None:
        """
        Get cached value if available and not expired.

        Returns:
            Cached value or None if not found/expired
        """
        cache_key = self._compute_key(key)
        with self._lock:
            found, value = self._lookup(cache_key)
            if found:
                self._stats.hits += 1
                return value
            self._stats.misses += 1
            return None

    def set(self, key: str, value: T) -> None:
        """Cache value with current timestamp."""
        cache_key = self._compute_key(key)
        with self._lock:
            self._store(cache_key, key, value)

    def get_or_load(self, key: str, loader: Callable[[], T]) -> T:
        """
        Return the cached value for key, filling it with loader on a miss.

        Concurrent misses on the same key run the loader once; the other
        callers wait for that fill. Loader exceptions propagate to the
        caller that ran it and are not cached, so waiters retry.

        Args:
            key: Cache key
            loader: Zero-argument callable producing the value

        Returns:
            Cached or freshly loaded value
        """
        cache_key = self._compute_key(key)

        while True:
            with self._lock:
                found, value = self._lookup(cache_key)
                if found:
                    self._stats.hits += 1
                    return value  # type: ignore[return-value]

                pending = self._inflight.get(cache_key)
                if pending is None:
                    self._stats.misses += 1
                    pending = threading.Event()
                    self._inflight[cache_key] = pending
                    owner = True
                else:
                    owner = False

            if not owner:
                pending.wait()
                continue

            try:
                value = loader()
                with self._lock:
                    self._store(cache_key, key, value)
                    self._stats.fills += 1
                return value
            finally:
                with self._lock:
                    self._inflight.pop(cache_key, None)
                pending.set()

    def delete(self, key: str) -> bool:
        """
        Delete entry from cache.

        Returns:
            True if deleted, False if not found
        """
        cache_key = self._compute_key(key)
        with self._lock:
            if cache_key in self._cache:
                del self._cache[cache_key]
                self._stats.size = len(self._cache)
                return True
            return False

    def delete_matching(self, predicate: Callable[[str], bool]) -> int:
        """
        Delete every entry whose original key satisfies predicate.

        Returns:
            Number of entries deleted
        """
        with self._lock:
            doomed = [cache_key for cache_key, (_, _, key) in self._cache.items() if predicate(key)]
            for cache_key in doomed:
                del self._cache[cache_key]
            self._stats.size = len(self._cache)
            return len(doomed)

    def clear(self) -> None:
        """Clear entire cache."""
        with self._lock:
            self._cache.clear()
            self._stats.size = 0

    @property
    def stats(self) -> Stats:
        """Get cache statistics."""
        return self._stats

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        """Check if key exists (doesn't update LRU order)."""
        return self._compute_key(key) in self._cache


__all__ = ["LRUCache", "Stats"]
