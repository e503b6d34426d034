"""Core type definitions for the worker runtime.

This module defines:
- Runner and resource states
- Worker kinds (shutdown strategies)
- Tick, unit result and event records
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def now_ms() -> int:
    """Get current timestamp in milliseconds."""
    return int(time.time() * 1000)


# ============== States ==============

class RunnerState(str, Enum):
    """Lifecycle state of a periodic runner."""
    IDLE = "idle"                      # Created, not started
    RUNNING = "running"                # Schedule is producing ticks
    STOP_REQUESTED = "stop_requested"  # No new work, draining in-flight units
    STOPPED = "stopped"                # Terminal


class ResourceState(str, Enum):
    """State of a shared resource."""
    ACTIVE = "active"
    DISPOSED = "disposed"


class WorkerKind(str, Enum):
    """Shutdown strategy of a runner."""
    DRAINING = "draining"        # Complete the tick source, then wait for all units
    LOOP = "loop"                # Periodic timer with the unit awaited inline
    DETACHING = "detaching"      # Drops in-flight handles on stop (buggy)
    TOKEN_GATED = "token_gated"  # Drain wait raced against the stop signal (buggy)


class UnitStatus(str, Enum):
    """Outcome of a single work unit."""
    OK = "ok"             # Ran to completion
    FAILED = "failed"     # Raised an error
    SKIPPED = "skipped"   # Saw the stop flag at entry


# ============== Records ==============

@dataclass(frozen=True)
class ScheduleTick:
    """A single firing of the periodic schedule."""
    index: int
    fired_at_ms: int


@dataclass
class UnitResult:
    """Result of one work unit."""
    sequence: int
    status: UnitStatus
    started_at_ms: int
    finished_at_ms: int
    error: str | None = None

    @property
    def duration_ms(self) -> int:
        return self.finished_at_ms - self.started_at_ms

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "status": self.status.value,
            "started_at_ms": self.started_at_ms,
            "finished_at_ms": self.finished_at_ms,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }


@dataclass
class WorkerEvent:
    """Event emitted by a runner or host."""
    type: str
    worker: str
    timestamp_ms: int
    sequence: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "worker": self.worker,
            "timestamp_ms": self.timestamp_ms,
            "sequence": self.sequence,
            "payload": self.payload,
        }


@dataclass
class RunnerStatus:
    """Point-in-time snapshot of a runner."""
    worker: str
    kind: WorkerKind
    state: RunnerState
    dispatched: int
    completed: int
    failed: int
    skipped: int
    in_flight: int
    last_sequence: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "worker": self.worker,
            "kind": self.kind.value,
            "state": self.state.value,
            "dispatched": self.dispatched,
            "completed": self.completed,
            "failed": self.failed,
            "skipped": self.skipped,
            "in_flight": self.in_flight,
            "last_sequence": self.last_sequence,
        }
