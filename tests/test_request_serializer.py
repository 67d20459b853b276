"""Tests for the single-flight reverse geocoding queue."""

import asyncio

import pytest

from conftest import GATINEAU, OTTAWA, TORONTO, FakeGeocoder

from ridelocate.domain.errors import (
    CancelledRequestError,
    GeocodingFailedError,
    InvalidAddressError,
)
from ridelocate.domain.models import Coordinate
from ridelocate.services.geocode_runner import GeocodeOperationRunner
from ridelocate.services.request_serializer import RequestSerializer


def make_serializer(geocoder, geo_config, queue_config) -> RequestSerializer:
    return RequestSerializer(GeocodeOperationRunner(geocoder, geo_config), queue_config)


@pytest.mark.asyncio
async def test_requests_complete_in_order_one_at_a_time(geo_config, queue_config):
    geocoder = FakeGeocoder(delay=0.02)
    serializer = make_serializer(geocoder, geo_config, queue_config)
    coordinates = [OTTAWA, GATINEAU, TORONTO]

    results = await asyncio.gather(*(serializer.enqueue(c) for c in coordinates))

    assert geocoder.completed == coordinates
    assert geocoder.max_in_flight == 1
    assert [r.components[0] for r in results] == ["1", "2", "3"]
    # The drain exits after the last cooldown.
    await asyncio.sleep(0.05)
    assert not serializer.is_processing
    assert serializer.pending_count == 0


@pytest.mark.asyncio
async def test_clear_cancels_every_waiting_request(geo_config, queue_config):
    geocoder = FakeGeocoder(delay=0.5)
    serializer = make_serializer(geocoder, geo_config, queue_config)

    tasks = [asyncio.ensure_future(serializer.enqueue(c)) for c in (OTTAWA, GATINEAU, TORONTO)]
    await asyncio.sleep(0.05)

    cancelled = serializer.clear()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert cancelled == 3
    assert all(isinstance(r, CancelledRequestError) for r in results)
    assert serializer.pending_count == 0
    assert not serializer.is_processing
    await asyncio.sleep(0.05)
    assert geocoder.in_flight == 0
    assert geocoder.completed == []


@pytest.mark.asyncio
async def test_enqueue_after_clear_is_processed(geo_config, queue_config):
    geocoder = FakeGeocoder(delay=0.05)
    serializer = make_serializer(geocoder, geo_config, queue_config)

    first = asyncio.ensure_future(serializer.enqueue(OTTAWA))
    await asyncio.sleep(0.01)
    serializer.clear()

    address = await serializer.enqueue(GATINEAU)

    with pytest.raises(CancelledRequestError):
        await first
    assert address.components[-1] == "45.4765"
    assert geocoder.max_in_flight == 1


@pytest.mark.asyncio
async def test_enqueue_while_draining_joins_same_drain(geo_config, queue_config):
    geocoder = FakeGeocoder(delay=0.03)
    serializer = make_serializer(geocoder, geo_config, queue_config)

    first = asyncio.ensure_future(serializer.enqueue(OTTAWA))
    await asyncio.sleep(0.01)
    assert serializer.is_processing
    drain = serializer._drain_task

    second = asyncio.ensure_future(serializer.enqueue(GATINEAU))
    await asyncio.sleep(0)
    assert serializer._drain_task is drain
    assert serializer.pending_count == 1

    await asyncio.gather(first, second)
    assert geocoder.completed == [OTTAWA, GATINEAU]


@pytest.mark.asyncio
async def test_invalid_coordinate_is_rejected_without_queueing(geocoder, geo_config, queue_config):
    serializer = make_serializer(geocoder, geo_config, queue_config)

    with pytest.raises(InvalidAddressError):
        await serializer.enqueue(Coordinate(999, 999))

    assert serializer.pending_count == 0
    assert not serializer.is_processing
    assert geocoder.reverse_calls == []


@pytest.mark.asyncio
async def test_failure_does_not_stop_the_queue(geo_config, queue_config):
    geocoder = FakeGeocoder(delay=0.01, error=OSError("flaky"))
    serializer = make_serializer(geocoder, geo_config, queue_config)

    first = asyncio.ensure_future(serializer.enqueue(OTTAWA))
    await asyncio.sleep(0)
    second = asyncio.ensure_future(serializer.enqueue(GATINEAU))

    with pytest.raises(GeocodingFailedError):
        await first
    geocoder.error = None

    address = await second
    assert not address.is_unknown
    assert geocoder.reverse_calls == [OTTAWA, GATINEAU]


@pytest.mark.asyncio
async def test_cancelled_caller_withdraws_queued_request(geo_config, queue_config):
    geocoder = FakeGeocoder(delay=0.05)
    serializer = make_serializer(geocoder, geo_config, queue_config)

    first = asyncio.ensure_future(serializer.enqueue(OTTAWA))
    second = asyncio.ensure_future(serializer.enqueue(GATINEAU))
    third = asyncio.ensure_future(serializer.enqueue(TORONTO))
    await asyncio.sleep(0.01)

    second.cancel()
    await asyncio.gather(first, third, return_exceptions=True)

    assert second.cancelled()
    assert geocoder.reverse_calls == [OTTAWA, TORONTO]


@pytest.mark.asyncio
async def test_cancelled_caller_stops_in_flight_call(geo_config, queue_config):
    geocoder = FakeGeocoder(delay=0.5)
    serializer = make_serializer(geocoder, geo_config, queue_config)

    task = asyncio.ensure_future(serializer.enqueue(OTTAWA))
    await asyncio.sleep(0.02)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.sleep(0.05)

    assert geocoder.cancelled == 1
    assert geocoder.in_flight == 0
    assert not serializer.is_processing


@pytest.mark.asyncio
async def test_aclose_waits_for_the_drain(geo_config, queue_config):
    geocoder = FakeGeocoder(delay=0.5)
    serializer = make_serializer(geocoder, geo_config, queue_config)

    task = asyncio.ensure_future(serializer.enqueue(OTTAWA))
    await asyncio.sleep(0.01)

    await serializer.aclose()

    with pytest.raises(CancelledRequestError):
        await task
    assert geocoder.in_flight == 0
    assert not serializer.is_processing
