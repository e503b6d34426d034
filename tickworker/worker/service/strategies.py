"""Runner strategies.

Two strategies honor the drain contract (the runner reports STOPPED only
after every dispatched unit completed). Two are kept as reproductions of
shutdown bugs: they report STOPPED while a unit is still mid-flight, so a
host that disposes shared resources right after stopping them gets
UsedAfterDisposal from the straggler.
"""
import asyncio
from typing import Any

from loguru import logger

from ..ticker import WorkFunc
from ..types import WorkerKind
from .runner import PeriodicRunner

logger = logger.bind(module="worker.strategies")


class DrainingRunner(PeriodicRunner):
    """Completes the tick source on stop, then waits for every unit.

    Stopping and draining use separate signals: the stop request only ends
    tick production, and the wait for in-flight units is unconditional.
    """

    kind = WorkerKind.DRAINING

    async def _execute(self) -> None:
        await self._dispatch_ticks()
        await self._drain()


class LoopRunner(PeriodicRunner):
    """Waits for the next tick in a loop and runs each unit inline.

    The stop signal can interrupt the wait for the next tick, never a unit
    that is already running. Units are sequential by construction, so
    max_concurrency is ignored.
    """

    kind = WorkerKind.LOOP

    async def _execute(self) -> None:
        while True:
            tick = await self.source.wait_for_next_tick(self.runtime.stop_event)
            if tick is None:
                break
            self._on_tick(tick)
            # Even if stop is requested meanwhile, the unit is awaited
            await self._dispatch()


class DetachingRunner(PeriodicRunner):
    """Unsubscribes on stop without draining. Reproduces a shutdown bug.

    Stopping cancels the schedule and forgets the in-flight handles, so
    await_stopped() returns while a unit may still be running.
    """

    kind = WorkerKind.DETACHING

    async def _execute(self) -> None:
        await self._dispatch_ticks()

    def _on_stop_requested(self) -> None:
        super()._on_stop_requested()
        if self.runtime.main_task is not None:
            self.runtime.main_task.cancel()
        if self.runtime.in_flight:
            logger.debug(f"Worker {self.name} detaching {len(self.runtime.in_flight)} in-flight unit(s)")
        self.runtime.in_flight.clear()


class TokenGatedRunner(PeriodicRunner):
    """Gates the drain wait on the stop signal. Reproduces a shutdown bug.

    The same signal that ends tick production also ends the wait for
    completion, so the wait returns as soon as stop is requested and the
    units in flight are abandoned.
    """

    kind = WorkerKind.TOKEN_GATED

    async def _execute(self) -> None:
        pipeline = asyncio.create_task(self._pipeline(), name=f"{self.name}-pipeline")
        stop_wait = asyncio.create_task(self.runtime.stop_event.wait())

        done, _ = await asyncio.wait({pipeline, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
        if pipeline in done:
            stop_wait.cancel()
            pipeline.result()
            return

        # Cancelling the pipeline unsubscribes; units it started are not awaited
        pipeline.cancel()
        try:
            await pipeline
        except asyncio.CancelledError:
            pass

    async def _pipeline(self) -> None:
        await self._dispatch_ticks()
        await self._drain()


RUNNER_CLASSES: dict[WorkerKind, type[PeriodicRunner]] = {
    WorkerKind.DRAINING: DrainingRunner,
    WorkerKind.LOOP: LoopRunner,
    WorkerKind.DETACHING: DetachingRunner,
    WorkerKind.TOKEN_GATED: TokenGatedRunner,
}


def create_runner(kind: WorkerKind | str, work: WorkFunc, **kwargs: Any) -> PeriodicRunner:
    """Create a runner for a worker kind.

    Args:
        kind: Worker kind or its string value
        work: Async callable run once per tick
        **kwargs: Passed to the runner constructor

    Returns:
        A new, idle runner
    """
    runner_cls = RUNNER_CLASSES[WorkerKind(kind)]
    return runner_cls(work, **kwargs)
