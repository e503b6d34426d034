"""Runner service package.

This package contains the periodic runner components:
- state.py: Runtime state and counters
- timer.py: Tick source (repeating timer + channel)
- events.py: Event system
- runner.py: Runner base class and lifecycle
- strategies.py: Draining, loop, detaching and token-gated runners
"""
from .runner import PeriodicRunner
from .strategies import (
    DrainingRunner,
    LoopRunner,
    DetachingRunner,
    TokenGatedRunner,
    create_runner,
)

__all__ = [
    "PeriodicRunner",
    "DrainingRunner",
    "LoopRunner",
    "DetachingRunner",
    "TokenGatedRunner",
    "create_runner",
]
