"""Bounded-latency race between an operation and a timer.

``race_with_timeout`` is the primitive every bounded operation in the
package goes through: forward/reverse geocoding, one-shot position
fixes and route calculation.

Guarantees:
1. Exactly one outcome is surfaced: the operation's value, the
   operation's error, or a timeout error.
2. The losing branch is cancelled and its cancellation is awaited
   before the call returns, so no provider callback outlives the race.
3. If the caller is cancelled, both branches are torn down the same way
   and the cancellation propagates.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from ..domain.errors import LocationTimeoutError

T = TypeVar("T")

_logger = logging.getLogger(__name__)


def _default_timeout_error(timeout: float) -> BaseException:
    return LocationTimeoutError(timeout_seconds=timeout)


async def _teardown(*tasks: asyncio.Future) -> None:
    """Cancel unfinished tasks and wait until each has acknowledged it."""
    for task in tasks:
        if not task.done():
            task.cancel()
    # Outcomes of torn-down branches are discarded.
    await asyncio.gather(*tasks, return_exceptions=True)


async def race_with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout: float,
    *,
    timeout_error: Optional[Callable[[float], BaseException]] = None,
    name: str = "operation",
) -> T:
    """Run ``operation`` against a timer and return whichever finishes first.

    Args:
        operation: Zero-argument callable returning the awaitable to run.
            A new awaitable is created per call, so the operation is
            attempted exactly once.
        timeout: Time bound in seconds.
        timeout_error: Factory for the error raised when the timer wins.
            Defaults to LocationTimeoutError.
        name: Label used in log records.

    Returns:
        The operation's value if it completes first.

    Raises:
        Exception: The operation's own error if it fails first.
        LocationTimeoutError: (or the factory's error) if the timer wins.
        asyncio.CancelledError: If the calling task is cancelled.
    """
    make_timeout_error = timeout_error or _default_timeout_error

    work = asyncio.ensure_future(operation())
    timer = asyncio.ensure_future(asyncio.sleep(timeout))

    try:
        done, _ = await asyncio.wait({work, timer}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        await _teardown(work, timer)
        raise

    # A finished operation wins a tie with the timer.
    if work in done:
        await _teardown(timer)
        return work.result()

    _logger.debug(
        "Race timed out",
        extra={"operation": name, "timeout_seconds": timeout},
    )
    await _teardown(work)
    raise make_timeout_error(timeout)
