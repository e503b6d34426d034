"""Worker module for periodic background work with graceful shutdown.

This module provides:
- A tick source that can stop producing without cancelling consumers
- Periodic runners with different shutdown strategies
- A ticker work unit that reports through a shared resource
- Structured lifecycle events
"""
# Core types
from .types import (
    RunnerState,
    ResourceState,
    WorkerKind,
    UnitStatus,
    ScheduleTick,
    UnitResult,
    WorkerEvent,
    RunnerStatus,
    now_ms,
)

# Errors
from .errors import (
    WorkerError,
    UsedAfterDisposal,
    InvalidStateTransition,
    DoubleStart,
)

# Work unit
from .ticker import Ticker, WorkFunc, simulated_work

# Service
from .service import (
    PeriodicRunner,
    DrainingRunner,
    LoopRunner,
    DetachingRunner,
    TokenGatedRunner,
    create_runner,
)
from .service.events import EventEmitter, EventTypes
from .service.timer import TickSource

__all__ = [
    # Core types
    "RunnerState",
    "ResourceState",
    "WorkerKind",
    "UnitStatus",
    "ScheduleTick",
    "UnitResult",
    "WorkerEvent",
    "RunnerStatus",
    "now_ms",
    # Errors
    "WorkerError",
    "UsedAfterDisposal",
    "InvalidStateTransition",
    "DoubleStart",
    # Work unit
    "Ticker",
    "WorkFunc",
    "simulated_work",
    # Service
    "PeriodicRunner",
    "DrainingRunner",
    "LoopRunner",
    "DetachingRunner",
    "TokenGatedRunner",
    "create_runner",
    "EventEmitter",
    "EventTypes",
    "TickSource",
]
