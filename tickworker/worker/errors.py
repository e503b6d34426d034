"""Exceptions raised by the worker runtime.

All errors derive from WorkerError so callers can catch the whole family.
"""
from typing import Any


class WorkerError(Exception):
    """Base class for worker runtime failures."""


class UsedAfterDisposal(WorkerError):
    """A shared resource was invoked after it was disposed.

    Seeing this error means the shutdown ordering was violated: some work
    unit was still running when the host tore the resource down.
    """

    def __init__(self, resource: str, payload: Any = None):
        self.resource = resource
        self.payload = payload
        super().__init__(f"{resource} was called after disposal (payload={payload!r})")


class InvalidStateTransition(WorkerError):
    """A runner control call is not valid in the runner's current state."""

    def __init__(self, operation: str, state: Any):
        self.operation = operation
        self.state = state
        state_value = getattr(state, "value", state)
        super().__init__(f"Cannot {operation} while runner is {state_value}")


class DoubleStart(InvalidStateTransition):
    """start() was called on a runner that already left the idle state."""

    def __init__(self, state: Any):
        super().__init__("start", state)
