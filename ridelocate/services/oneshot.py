"""Single-resolution result slot.

A OneShot wraps an ``asyncio.Future`` that may be resolved exactly once.
A second resolution attempt is a programming error: it is logged at
ERROR level and ignored so a late device callback can never crash the
application.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

_logger = logging.getLogger(__name__)


class OneShot(Generic[T]):
    """A future that accepts one outcome: a value, an error, or cancellation."""

    def __init__(self, name: str = "oneshot", loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self.name = name
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future[T] = self._loop.create_future()

    @property
    def future(self) -> asyncio.Future[T]:
        return self._future

    @property
    def done(self) -> bool:
        return self._future.done()

    def resolve(self, value: T) -> bool:
        """Resolve with a value. Returns False if already resolved."""
        if self._reject_if_done("value"):
            return False
        self._future.set_result(value)
        return True

    def fail(self, error: BaseException) -> bool:
        """Resolve with an error. Returns False if already resolved."""
        if self._reject_if_done("error"):
            return False
        self._future.set_exception(error)
        return True

    def cancel(self) -> bool:
        """Resolve by cancellation. Returns False if already resolved."""
        if self._reject_if_done("cancellation"):
            return False
        return self._future.cancel()

    async def wait(self) -> T:
        """Wait for the outcome without letting caller cancellation resolve the slot."""
        return await asyncio.shield(self._future)

    def _reject_if_done(self, outcome: str) -> bool:
        if not self._future.done():
            return False
        _logger.error(
            "One-shot slot resolved twice; ignoring second outcome",
            extra={"slot": self.name, "outcome": outcome},
        )
        return True

    def __repr__(self) -> str:
        state = "done" if self.done else "pending"
        return f"OneShot(name={self.name!r}, {state})"
