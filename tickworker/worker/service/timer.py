"""Tick source for periodic runners.

Produces ScheduleTick events on a fixed interval into a single-slot channel.
Completing the source stops production and wakes consumers without
cancelling them.
"""
import asyncio
from typing import AsyncIterator

from loguru import logger

from ..types import ScheduleTick, now_ms

logger = logger.bind(module="worker.timer")


class TickSource:
    """Repeating timer that can be told to stop producing.

    A tick that fires while the previous one has not been consumed yet is
    coalesced (dropped), so a slow consumer sees at most one pending tick.
    """

    def __init__(
        self,
        interval: float = 1.0,
        first_tick_immediately: bool = False,
        name: str = "ticks",
    ):
        if interval <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval}")
        self.interval = interval
        self.first_tick_immediately = first_tick_immediately
        self.name = name

        self._channel: asyncio.Queue[ScheduleTick] = asyncio.Queue(maxsize=1)
        self._completed = asyncio.Event()
        self._producer: asyncio.Task | None = None
        self._next_index = 0
        self.fired = 0
        self.coalesced = 0

    @property
    def completed(self) -> bool:
        return self._completed.is_set()

    def start(self) -> None:
        """Start producing ticks in a background task."""
        if self._producer is not None:
            raise RuntimeError(f"Tick source {self.name} already started")
        self._producer = asyncio.create_task(self._produce(), name=f"{self.name}-producer")

    def complete(self) -> None:
        """Stop producing ticks. Pending consumers are woken with no tick."""
        if self._completed.is_set():
            return
        self._completed.set()
        logger.debug(f"Tick source {self.name} completed after {self.fired} ticks")

    async def wait_closed(self) -> None:
        """Wait for the producer task to exit after complete()."""
        if self._producer is not None:
            await self._producer

    async def _produce(self) -> None:
        loop = asyncio.get_running_loop()
        if self.first_tick_immediately:
            self._fire()
        next_at = loop.time() + self.interval

        while not self._completed.is_set():
            delay = max(0.0, next_at - loop.time())
            try:
                await asyncio.wait_for(self._completed.wait(), timeout=delay)
                break
            except asyncio.TimeoutError:
                pass

            self._fire()
            next_at += self.interval

            # Skip deadlines missed while the loop was busy
            current = loop.time()
            if next_at <= current:
                missed = int((current - next_at) // self.interval) + 1
                next_at += missed * self.interval

    def _fire(self) -> None:
        tick = ScheduleTick(index=self._next_index, fired_at_ms=now_ms())
        self._next_index += 1
        self.fired += 1
        try:
            self._channel.put_nowait(tick)
        except asyncio.QueueFull:
            self.coalesced += 1
            logger.debug(f"Tick {tick.index} coalesced, consumer still busy")

    async def wait_for_next_tick(
        self,
        stop_event: asyncio.Event | None = None,
    ) -> ScheduleTick | None:
        """Wait for the next tick.

        Args:
            stop_event: Optional extra signal that ends the wait early

        Returns:
            The tick, or None if the source completed or stop_event fired
        """
        if self._completed.is_set() or (stop_event is not None and stop_event.is_set()):
            return None

        get_task = asyncio.create_task(self._channel.get())
        waiters = {get_task, asyncio.create_task(self._completed.wait())}
        if stop_event is not None:
            waiters.add(asyncio.create_task(stop_event.wait()))

        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()

        if self._completed.is_set() or (stop_event is not None and stop_event.is_set()):
            return None
        return get_task.result()

    async def __aiter__(self) -> AsyncIterator[ScheduleTick]:
        while True:
            tick = await self.wait_for_next_tick()
            if tick is None:
                return
            yield tick
