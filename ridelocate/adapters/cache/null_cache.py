"""Null cache implementation for testing.

This cache always misses, so every lookup reaches the provider. Use it
in test fixtures to keep tests from depending on each other's results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Hashable, Optional, TypeVar

T = TypeVar("T")


@dataclass
class NullCache(Generic[T]):
    """No-op cache - always misses."""

    name: str = "null"

    def get(self, key: Hashable) -> Optional[T]:
        return None

    def set(self, key: Hashable, value: T, ttl: Optional[float] = None) -> None:
        pass

    def invalidate(self, key: Hashable) -> bool:
        return False

    def clear(self) -> int:
        return 0

    def size(self) -> int:
        return 0
