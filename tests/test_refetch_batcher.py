# tests/test_refetch_batcher.py

from __future__ import annotations

import asyncio

import pytest

from kanban_client.board.refetch import RefetchBatcher

from .fakes import ManualClock


class Counter:
    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1


@pytest.mark.asyncio
async def test_schedule_fires_once_after_quiet_interval() -> None:
    clock = ManualClock()
    refetch = Counter()
    batcher = RefetchBatcher(refetch, delay_seconds=1.0, call_later=clock.call_later)

    batcher.schedule()
    assert batcher.pending

    clock.advance(0.99)
    await batcher.join()
    assert refetch.calls == 0

    clock.advance(0.01)
    await batcher.join()
    assert refetch.calls == 1
    assert not batcher.pending


@pytest.mark.asyncio
async def test_reschedule_pushes_refetch_out() -> None:
    clock = ManualClock()
    refetch = Counter()
    batcher = RefetchBatcher(refetch, delay_seconds=1.0, call_later=clock.call_later)

    batcher.schedule()
    clock.advance(0.8)
    batcher.schedule()
    clock.advance(0.8)
    await batcher.join()
    assert refetch.calls == 0
    assert len(clock.active) == 1

    clock.advance(0.2)
    await batcher.join()
    assert refetch.calls == 1


@pytest.mark.asyncio
async def test_refetch_now_cancels_waiting_timer() -> None:
    clock = ManualClock()
    refetch = Counter()
    batcher = RefetchBatcher(refetch, delay_seconds=1.0, call_later=clock.call_later)

    batcher.schedule()
    await batcher.refetch_now()

    assert refetch.calls == 1
    assert not batcher.pending
    clock.advance(10.0)
    await batcher.join()
    assert refetch.calls == 1


@pytest.mark.asyncio
async def test_failing_timer_refetch_does_not_escape() -> None:
    clock = ManualClock()

    async def broken() -> None:
        raise RuntimeError("boom")

    batcher = RefetchBatcher(broken, delay_seconds=0.5, call_later=clock.call_later)
    batcher.schedule()
    clock.advance(0.5)
    await batcher.join()
    assert not batcher.pending


@pytest.mark.asyncio
async def test_default_timer_uses_running_loop() -> None:
    refetch = Counter()
    batcher = RefetchBatcher(refetch, delay_seconds=0.01)

    batcher.schedule()
    batcher.schedule()
    await asyncio.sleep(0.05)
    await batcher.join()

    assert refetch.calls == 1
