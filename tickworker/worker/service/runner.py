"""Periodic runner base class.

A runner fires one work unit per schedule tick and, on a stop request, stops
producing new ticks. Concrete strategies decide how (and whether) the units
already in flight are awaited before the runner reports itself stopped.
"""
import asyncio
from abc import ABC, abstractmethod

from loguru import logger

from ..errors import DoubleStart, InvalidStateTransition
from ..ticker import WorkFunc
from ..types import (
    RunnerState,
    RunnerStatus,
    ScheduleTick,
    UnitResult,
    UnitStatus,
    WorkerKind,
    now_ms,
)
from .events import EventEmitter, EventTypes, emit_worker_event
from .state import RunnerRuntimeState
from .timer import TickSource

logger = logger.bind(module="worker.runner")


class PeriodicRunner(ABC):
    """Drives a repeating schedule and dispatches work units.

    Lifecycle: IDLE -> RUNNING -> STOP_REQUESTED -> STOPPED.
    """

    kind: WorkerKind

    def __init__(
        self,
        work: WorkFunc,
        interval: float = 1.0,
        max_concurrency: int = 1,
        name: str | None = None,
        events: EventEmitter | None = None,
        first_tick_immediately: bool = False,
    ):
        """Initialize the runner.

        Args:
            work: Async callable run once per tick with the unit's sequence number
            interval: Seconds between ticks
            max_concurrency: Maximum number of units in flight at once
            name: Worker name used in logs and events
            events: Event emitter, a private one is created if omitted
            first_tick_immediately: Fire the first tick at start instead of after one interval
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")

        self.work = work
        self.interval = interval
        self.max_concurrency = max_concurrency
        self.name = name or f"{self.kind.value}-worker"
        self.events = events or EventEmitter()
        self.source = TickSource(
            interval,
            first_tick_immediately=first_tick_immediately,
            name=f"{self.name}-ticks",
        )
        self.runtime = RunnerRuntimeState()

    @property
    def state(self) -> RunnerState:
        return self.runtime.state

    @property
    def results(self) -> list[UnitResult]:
        return list(self.runtime.results)

    @property
    def failures(self) -> list[BaseException]:
        return list(self.runtime.failures)

    def status(self) -> RunnerStatus:
        """Get a snapshot of the runner's counters."""
        return RunnerStatus(
            worker=self.name,
            kind=self.kind,
            state=self.runtime.state,
            dispatched=self.runtime.dispatched,
            completed=self.runtime.completed,
            failed=self.runtime.failed,
            skipped=self.runtime.skipped,
            in_flight=len(self.runtime.in_flight),
            last_sequence=self.runtime.last_sequence,
        )

    # ============== Control ==============

    async def start(self) -> None:
        """Start the schedule in the background and return immediately.

        Raises:
            DoubleStart: If the runner was already started
        """
        if self.runtime.state != RunnerState.IDLE:
            raise DoubleStart(self.runtime.state)

        logger.info(f"Worker {self.name} starting up")
        emit_worker_event(self.events, EventTypes.WORKER_STARTING, self.name)

        self.runtime.state = RunnerState.RUNNING
        self.source.start()
        self.runtime.main_task = asyncio.create_task(self._run(), name=self.name)

    def request_stop(self) -> None:
        """Signal that no new work should be started. Does not block.

        Raises:
            InvalidStateTransition: If the runner is idle or already stopped
        """
        if self.runtime.state in (RunnerState.IDLE, RunnerState.STOPPED):
            raise InvalidStateTransition("request stop", self.runtime.state)
        if self.runtime.state == RunnerState.STOP_REQUESTED:
            logger.debug(f"Worker {self.name} stop already requested")
            return

        logger.info(f"Worker {self.name} shutting down")
        self.runtime.state = RunnerState.STOP_REQUESTED
        self.runtime.stop_event.set()
        emit_worker_event(
            self.events,
            EventTypes.WORKER_STOPPING,
            self.name,
            payload={"in_flight": len(self.runtime.in_flight)},
        )
        self._on_stop_requested()

    async def await_stopped(self) -> None:
        """Wait until the runner reaches STOPPED.

        Raises:
            InvalidStateTransition: If the runner was never started
        """
        if self.runtime.state == RunnerState.IDLE:
            raise InvalidStateTransition("await stop", self.runtime.state)
        await self.runtime.stopped_event.wait()

    async def stop(self) -> None:
        """Request stop and wait for the runner to finish."""
        if self.runtime.state == RunnerState.STOPPED:
            return
        self.request_stop()
        await self.await_stopped()

    # ============== Strategy hooks ==============

    @abstractmethod
    async def _execute(self) -> None:
        """Consume ticks and dispatch units until the schedule ends."""

    def _on_stop_requested(self) -> None:
        """Stop producing ticks. Strategies may do more (or do it wrong)."""
        self.source.complete()

    # ============== Internals ==============

    async def _run(self) -> None:
        try:
            await self._execute()
        except asyncio.CancelledError:
            logger.info(f"Worker {self.name} schedule cancelled")
        except Exception as e:
            logger.error(f"Worker {self.name} schedule failed: {e}")
        finally:
            self.source.complete()
            self._mark_stopped()

    def _mark_stopped(self) -> None:
        self.runtime.state = RunnerState.STOPPED
        self.runtime.stopped_event.set()
        logger.info(
            f"Worker {self.name} stopped: dispatched={self.runtime.dispatched} "
            f"completed={self.runtime.completed} in_flight={len(self.runtime.in_flight)}"
        )
        emit_worker_event(
            self.events,
            EventTypes.WORKER_STOPPED,
            self.name,
            payload=self.status().to_dict(),
        )

    def _on_tick(self, tick: ScheduleTick) -> None:
        logger.debug(f"Worker {self.name} received tick {tick.index}")
        emit_worker_event(
            self.events,
            EventTypes.TICK_RECEIVED,
            self.name,
            payload={"index": tick.index, "fired_at_ms": tick.fired_at_ms},
        )

    def _dispatch(self) -> asyncio.Task:
        """Start the next work unit as a task and track it as in flight."""
        sequence = self.runtime.next_sequence()
        task = asyncio.create_task(self._run_unit(sequence), name=f"{self.name}-unit-{sequence}")
        self.runtime.in_flight.add(task)
        task.add_done_callback(self.runtime.in_flight.discard)
        return task

    async def _dispatch_ticks(self) -> None:
        """Dispatch one unit per tick, with at most max_concurrency in flight."""
        slots = asyncio.Semaphore(self.max_concurrency)

        async for tick in self.source:
            self._on_tick(tick)
            await slots.acquire()
            if self.runtime.stop_requested:
                slots.release()
                break
            task = self._dispatch()
            task.add_done_callback(lambda _: slots.release())

    async def _drain(self) -> None:
        """Wait, without timeout, for every unit still in flight."""
        while self.runtime.in_flight:
            logger.info(f"Worker {self.name} draining {len(self.runtime.in_flight)} in-flight unit(s)")
            await asyncio.wait(set(self.runtime.in_flight))

    async def _run_unit(self, sequence: int) -> None:
        started_at_ms = now_ms()

        # Cooperative cancellation is only checked before the unit starts
        if self.runtime.stop_requested:
            self._record(sequence, UnitStatus.SKIPPED, started_at_ms)
            emit_worker_event(self.events, EventTypes.UNIT_SKIPPED, self.name, sequence)
            logger.debug(f"Worker {self.name} skipped unit {sequence}, stop requested")
            return

        emit_worker_event(self.events, EventTypes.UNIT_STARTED, self.name, sequence)
        try:
            await self.work(sequence)
        except Exception as e:
            self._on_unit_failed(sequence, e, started_at_ms)
            return

        result = self._record(sequence, UnitStatus.OK, started_at_ms)
        emit_worker_event(
            self.events,
            EventTypes.UNIT_COMPLETED,
            self.name,
            sequence,
            {"duration_ms": result.duration_ms},
        )

    def _on_unit_failed(self, sequence: int, error: Exception, started_at_ms: int) -> None:
        """Per-tick failure handler: log and record, never re-raise."""
        logger.error(f"Worker {self.name} unit {sequence} failed: {error}")
        self.runtime.failures.append(error)
        self._record(sequence, UnitStatus.FAILED, started_at_ms, error=str(error))
        emit_worker_event(
            self.events,
            EventTypes.UNIT_FAILED,
            self.name,
            sequence,
            {"error": str(error)[:500], "error_type": type(error).__name__},
        )

    def _record(
        self,
        sequence: int,
        status: UnitStatus,
        started_at_ms: int,
        error: str | None = None,
    ) -> UnitResult:
        result = UnitResult(
            sequence=sequence,
            status=status,
            started_at_ms=started_at_ms,
            finished_at_ms=now_ms(),
            error=error,
        )
        self.runtime.results.append(result)
        self.runtime.completed += 1
        if status == UnitStatus.FAILED:
            self.runtime.failed += 1
        elif status == UnitStatus.SKIPPED:
            self.runtime.skipped += 1
        return result
