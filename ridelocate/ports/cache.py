"""Cache port - Injectable caching abstraction.

Used by geocoding adapters to avoid asking the provider twice for the
same lookup. Keys are any hashable value (rounded coordinates, normalized
queries).
"""

from __future__ import annotations

from typing import Hashable, Optional, Protocol, TypeVar

T = TypeVar("T")


class CachePort(Protocol[T]):
    """Port for caching.

    Implementations:
    - adapters/cache/memory_cache.py (InMemoryCache) - Production
    - adapters/cache/null_cache.py (NullCache) - Testing
    """

    def get(self, key: Hashable) -> Optional[T]:
        """Get a value from the cache.

        Args:
            key: The cache key.

        Returns:
            The cached value, or None if not found or expired.
        """
        ...

    def set(self, key: Hashable, value: T) -> None:
        """Set a value in the cache.

        Args:
            key: The cache key.
            value: The value to cache.
        """
        ...

    def invalidate(self, key: Hashable) -> bool:
        """Invalidate a specific cache entry.

        Returns:
            True if the key existed and was removed, False otherwise.
        """
        ...

    def clear(self) -> int:
        """Clear all entries from the cache.

        Returns:
            Number of entries that were cleared.
        """
        ...

    def size(self) -> int:
        """Return the number of entries in the cache."""
        ...
