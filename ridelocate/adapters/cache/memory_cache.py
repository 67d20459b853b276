"""In-memory TTL cache for geocoding results.

Entries expire after a time-to-live and the least recently used entry is
evicted once ``max_size`` is reached. The cache is only touched from the
event loop thread, but it keeps a lock so it can be shared with worker
threads as well.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass
class InMemoryCache(Generic[T]):
    """LRU cache with optional TTL.

    Implements the CachePort protocol.

    Attributes:
        default_ttl_seconds: Time-to-live for entries (None = no expiry)
        max_size: Maximum number of entries (None = unlimited)
        name: Cache name for logging
        clock: Monotonic time source, injectable for tests

    Example:
        cache = InMemoryCache[Placemark](name="reverse", default_ttl_seconds=3600)
        cache.set((45.4215, -75.6972), placemark)
    """

    default_ttl_seconds: Optional[float] = None
    max_size: Optional[int] = None
    name: str = "cache"
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    _store: "OrderedDict[Hashable, Tuple[Any, float]]" = field(
        default_factory=OrderedDict, repr=False
    )
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    _hits: int = field(default=0, repr=False)
    _misses: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(f"cache.{self.name}")

    def get(self, key: Hashable) -> Optional[T]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None

            value, expiry = entry
            if self.clock() >= expiry:
                del self._store[key]
                self._logger.debug("Cache entry expired", extra={"key": str(key)})
                self._misses += 1
                return None

            self._store.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: Hashable, value: T, ttl: Optional[float] = None) -> None:
        with self._lock:
            if key in self._store:
                self._store.move_to_end(key)
            elif self.max_size is not None and len(self._store) >= self.max_size:
                evicted, _ = self._store.popitem(last=False)
                self._logger.debug("Cache evicted entry", extra={"key": str(evicted)})

            effective_ttl = ttl if ttl is not None else self.default_ttl_seconds
            expiry = self.clock() + effective_ttl if effective_ttl is not None else float("inf")
            self._store[key] = (value, expiry)

    def invalidate(self, key: Hashable) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> int:
        with self._lock:
            count = len(self._store)
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._logger.info("Cache cleared", extra={"entries_cleared": count})
            return count

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    def stats(self) -> Dict[str, Any]:
        """Return hit/miss counts, hit rate and size."""
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0.0
            return {
                "size": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate_percent": round(hit_rate, 1),
            }
