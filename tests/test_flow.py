import asyncio

import pytest

from storyline.flow import StateFlow


async def _next(agen):
    return await asyncio.wait_for(agen.__anext__(), timeout=1)


@pytest.mark.asyncio
async def test_subscribers_see_current_then_changes():
    flow = StateFlow(0)
    first = flow.subscribe()
    second = flow.subscribe()

    assert await _next(first) == 0
    assert await _next(second) == 0

    assert flow.set(1) is True
    assert await _next(first) == 1
    assert await _next(second) == 1

    await first.aclose()
    await second.aclose()
    assert flow.subscriber_count == 0


@pytest.mark.asyncio
async def test_equal_values_are_not_emitted():
    flow = StateFlow("a")
    sub = flow.subscribe()
    assert await _next(sub) == "a"

    assert flow.set("a") is False
    flow.set("b")
    flow.set("a")
    flow.set("a")

    assert await _next(sub) == "b"
    assert await _next(sub) == "a"
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(sub.__anext__(), timeout=0.05)


@pytest.mark.asyncio
async def test_late_subscriber_starts_from_latest():
    flow = StateFlow(1)
    flow.set(2)
    flow.set(3)
    sub = flow.subscribe()
    assert await _next(sub) == 3
    await sub.aclose()
