"""Runtime state for periodic runners.

Holds the lifecycle state, counters and the set of in-flight work units.
"""
import asyncio
from dataclasses import dataclass, field

from ..types import RunnerState, UnitResult


@dataclass
class RunnerRuntimeState:
    """Mutable runtime state of a runner."""
    state: RunnerState = RunnerState.IDLE
    main_task: asyncio.Task | None = None

    # Cooperative cancellation flag checked by units at entry
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)
    # Set once the runner reaches STOPPED
    stopped_event: asyncio.Event = field(default_factory=asyncio.Event)

    # Dispatched, not yet completed units
    in_flight: set[asyncio.Task] = field(default_factory=set)

    dispatched: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    last_sequence: int | None = None

    results: list[UnitResult] = field(default_factory=list)
    failures: list[BaseException] = field(default_factory=list)

    @property
    def stop_requested(self) -> bool:
        return self.stop_event.is_set()

    def next_sequence(self) -> int:
        """Reserve the next work unit sequence number."""
        sequence = self.dispatched
        self.dispatched += 1
        self.last_sequence = sequence
        return sequence
