"""Tests for the single-resolution result slot."""

import asyncio
import logging

import pytest

from ridelocate.domain.errors import CancelledRequestError
from ridelocate.services.oneshot import OneShot


@pytest.mark.asyncio
async def test_resolves_once_with_value():
    slot = OneShot(name="test")
    assert slot.resolve("value") is True
    assert slot.done
    assert await slot.wait() == "value"


@pytest.mark.asyncio
async def test_fail_delivers_error():
    slot = OneShot(name="test")
    slot.fail(CancelledRequestError(request_id="abc"))
    with pytest.raises(CancelledRequestError):
        await slot.wait()


@pytest.mark.asyncio
async def test_second_resolution_is_logged_and_ignored(caplog):
    slot = OneShot(name="double")
    slot.resolve("first")

    with caplog.at_level(logging.ERROR, logger="ridelocate.services.oneshot"):
        assert slot.resolve("second") is False
        assert slot.fail(RuntimeError("late")) is False
        assert slot.cancel() is False

    assert await slot.wait() == "first"
    assert len(caplog.records) == 3
    assert all(r.slot == "double" for r in caplog.records)


@pytest.mark.asyncio
async def test_waiter_cancellation_does_not_resolve_slot():
    slot = OneShot(name="shielded")
    waiter = asyncio.ensure_future(slot.wait())
    await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    assert not slot.done
    assert slot.resolve("still usable") is True
