"""Tests for the tick source."""

import asyncio

import pytest

from tickworker.worker.service.timer import TickSource


class TestTickSource:
    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            TickSource(0)

    @pytest.mark.anyio
    async def test_start_twice_raises(self) -> None:
        source = TickSource(0.05)
        source.start()
        try:
            with pytest.raises(RuntimeError):
                source.start()
        finally:
            source.complete()
            await source.wait_closed()

    @pytest.mark.anyio
    async def test_ticks_have_increasing_indexes(self) -> None:
        source = TickSource(0.02)
        source.start()

        ticks = [await source.wait_for_next_tick() for _ in range(3)]
        source.complete()
        await source.wait_closed()

        indexes = [tick.index for tick in ticks]
        assert indexes[0] == 0
        assert indexes == sorted(set(indexes))
        assert ticks[0].fired_at_ms <= ticks[1].fired_at_ms <= ticks[2].fired_at_ms

    @pytest.mark.anyio
    async def test_first_tick_immediately(self) -> None:
        source = TickSource(10.0, first_tick_immediately=True)
        source.start()

        tick = await asyncio.wait_for(source.wait_for_next_tick(), timeout=1.0)
        source.complete()
        await source.wait_closed()

        assert tick is not None
        assert tick.index == 0

    @pytest.mark.anyio
    async def test_complete_wakes_waiting_consumer(self) -> None:
        source = TickSource(10.0)
        source.start()

        waiter = asyncio.create_task(source.wait_for_next_tick())
        await asyncio.sleep(0.01)
        source.complete()

        assert await asyncio.wait_for(waiter, timeout=1.0) is None
        await asyncio.wait_for(source.wait_closed(), timeout=1.0)
        assert source.completed

    @pytest.mark.anyio
    async def test_stop_event_ends_wait_without_completing(self) -> None:
        source = TickSource(10.0)
        source.start()
        stop = asyncio.Event()

        waiter = asyncio.create_task(source.wait_for_next_tick(stop))
        await asyncio.sleep(0.01)
        stop.set()

        assert await asyncio.wait_for(waiter, timeout=1.0) is None
        assert not source.completed

        source.complete()
        await source.wait_closed()

    @pytest.mark.anyio
    async def test_unconsumed_ticks_are_coalesced(self) -> None:
        source = TickSource(0.01)
        source.start()

        await asyncio.sleep(0.1)
        tick = await source.wait_for_next_tick()
        source.complete()
        await source.wait_closed()

        assert tick is not None
        assert tick.index == 0
        assert source.coalesced > 0
        assert source.fired > 1

    @pytest.mark.anyio
    async def test_iteration_ends_when_completed(self) -> None:
        source = TickSource(0.01)
        source.start()
        seen = []

        async for tick in source:
            seen.append(tick.index)
            if len(seen) == 3:
                source.complete()

        await source.wait_closed()
        assert len(seen) == 3
        assert seen[0] == 0
        assert seen == sorted(set(seen))

    @pytest.mark.anyio
    async def test_no_tick_after_complete(self) -> None:
        source = TickSource(0.01)
        source.start()
        await asyncio.sleep(0.05)

        source.complete()
        await source.wait_closed()

        assert await source.wait_for_next_tick() is None
