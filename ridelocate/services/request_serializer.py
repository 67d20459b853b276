"""Single-flight FIFO queue for reverse geocoding.

Bursty callers (a map cursor being dragged, a list of pickup points)
enqueue coordinates here instead of calling the provider directly. The
serializer resolves them one at a time, in enqueue order, with a short
cooldown between provider calls.

Invariants:
- at most one request is in flight;
- requests complete in enqueue order;
- every request's slot is resolved exactly once (address, error or
  cancellation), including when the queue is cleared.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional

from ..config import QueueConfig, get_config
from ..domain.errors import CancelledRequestError
from ..domain.models import Coordinate, GeocodeRequest, ResolvedAddress, validate_coordinate
from .geocode_runner import GeocodeOperationRunner
from .oneshot import OneShot


@dataclass
class RequestSerializer:
    """Serializes reverse-geocoding requests through one drain task.

    The "processing" flag is the drain task itself: while it is alive,
    new requests are appended and picked up by the same loop.

    Attributes:
        runner: Operation runner used for each request
        config: Queue configuration (cooldown between requests)
    """

    runner: GeocodeOperationRunner
    config: QueueConfig = field(default_factory=lambda: get_config().queue)

    _pending: Deque[GeocodeRequest] = field(default_factory=deque, repr=False)
    _drain_task: Optional[asyncio.Task] = field(default=None, repr=False)
    _retired_drain: Optional[asyncio.Task] = field(default=None, repr=False)
    _in_flight: Optional[GeocodeRequest] = field(default=None, repr=False)
    _in_flight_work: Optional[asyncio.Task] = field(default=None, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    @property
    def pending_count(self) -> int:
        """Number of requests waiting behind the in-flight one."""
        return len(self._pending)

    @property
    def is_processing(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    async def enqueue(self, coordinate: Coordinate) -> ResolvedAddress:
        """Queue a reverse geocode and wait for its result.

        Args:
            coordinate: Coordinate to resolve.

        Returns:
            The resolved address.

        Raises:
            InvalidAddressError: If the coordinate is out of range (nothing
                is queued).
            CancelledRequestError: If the queue is cleared first.
            GeocodingFailedError: If the provider fails.
            LocationTimeoutError: If the provider does not answer in time.
        """
        validate_coordinate(coordinate)

        request = GeocodeRequest(coordinate=coordinate, slot=OneShot(name="reverse_geocode"))
        request.slot.future.add_done_callback(lambda _: self._on_slot_done(request))
        self._pending.append(request)
        self._logger.debug(
            "Queued reverse geocode",
            extra={"request_id": request.request_id, "queue_size": len(self._pending)},
        )

        if not self.is_processing:
            self._drain_task = asyncio.ensure_future(self._drain())

        # Cancelling the caller cancels the slot, which withdraws the request.
        return await request.slot.future

    def clear(self) -> int:
        """Cancel the drain and every request still waiting.

        Returns:
            Number of requests resolved with CancelledRequestError.
        """
        drain = self._drain_task
        self._drain_task = None
        if drain is not None and not drain.done():
            drain.cancel()
            self._retired_drain = drain

        cancelled = 0
        in_flight = self._in_flight
        if in_flight is not None and in_flight.slot.fail(
            CancelledRequestError(request_id=in_flight.request_id)
        ):
            cancelled += 1

        while self._pending:
            request = self._pending.popleft()
            if request.slot.done:
                continue
            request.slot.fail(CancelledRequestError(request_id=request.request_id))
            cancelled += 1

        self._logger.info("Cleared reverse geocode queue", extra={"cancelled": cancelled})
        return cancelled

    async def aclose(self) -> None:
        """Clear the queue and wait for the drain task to finish."""
        earlier = self._retired_drain
        self.clear()
        drains = {t for t in (earlier, self._retired_drain) if t is not None}
        self._retired_drain = None
        if drains:
            await asyncio.gather(*drains, return_exceptions=True)

    async def _drain(self) -> None:
        current = asyncio.current_task()
        retired, self._retired_drain = self._retired_drain, None
        try:
            if retired is not None:
                # A cleared drain may still be tearing down its provider call.
                await asyncio.gather(retired, return_exceptions=True)
            while self._pending:
                request = self._pending.popleft()
                if request.slot.done:
                    continue
                await self._process(request)
                # Rate limit toward the provider, not a retry delay.
                await asyncio.sleep(self.config.cooldown_seconds)
        finally:
            # clear() may already have detached this task and started another.
            if self._drain_task is current:
                self._drain_task = None

    async def _process(self, request: GeocodeRequest) -> None:
        self._logger.debug("Processing reverse geocode", extra={"request_id": request.request_id})
        work = asyncio.ensure_future(self.runner.resolve_address(request.coordinate))
        self._in_flight = request
        self._in_flight_work = work
        try:
            # wait() does not propagate the work's own cancellation.
            await asyncio.wait({work})
        except asyncio.CancelledError:
            work.cancel()
            await asyncio.gather(work, return_exceptions=True)
            if not request.slot.done:
                request.slot.fail(CancelledRequestError(request_id=request.request_id))
            raise
        finally:
            if self._in_flight is request:
                self._in_flight = None
                self._in_flight_work = None

        if request.slot.done:
            return
        if work.cancelled():
            request.slot.fail(CancelledRequestError(request_id=request.request_id))
        elif work.exception() is not None:
            error = work.exception()
            self._logger.info(
                "Reverse geocode failed",
                extra={"request_id": request.request_id, "error": str(error)},
            )
            request.slot.fail(error)
        else:
            request.slot.resolve(work.result())

    def _on_slot_done(self, request: GeocodeRequest) -> None:
        if not request.slot.future.cancelled():
            return
        # The caller went away: withdraw the request or stop its provider call.
        if request in self._pending:
            self._pending.remove(request)
            self._logger.debug("Withdrew queued request", extra={"request_id": request.request_id})
        if self._in_flight is request and self._in_flight_work is not None:
            self._in_flight_work.cancel()
