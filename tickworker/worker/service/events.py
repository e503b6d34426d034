"""Event system for the worker runtime.

Emits structured events for runner and host lifecycle changes.
"""
from typing import Any, Callable

from loguru import logger

from ..types import WorkerEvent, now_ms

logger = logger.bind(module="worker.events")


# Type alias for event handlers
EventHandler = Callable[[WorkerEvent], None]


class EventEmitter:
    """Event emitter for worker events."""

    def __init__(self):
        self._handlers: list[EventHandler] = []

    def add_handler(self, handler: EventHandler) -> None:
        """Add an event handler."""
        self._handlers.append(handler)

    def remove_handler(self, handler: EventHandler) -> None:
        """Remove an event handler."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    def emit(self, event: WorkerEvent) -> None:
        """Emit an event to all handlers."""
        for handler in self._handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler error: {e}")


def emit_worker_event(
    emitter: EventEmitter,
    event_type: str,
    worker: str,
    sequence: int | None = None,
    payload: dict[str, Any] | None = None,
) -> None:
    """Emit a worker-related event.

    Args:
        emitter: Event emitter instance
        event_type: Type of event (e.g., "unit.started", "worker.stopped")
        worker: Name of the runner or host emitting the event
        sequence: Work unit sequence number, if the event concerns one
        payload: Additional event payload
    """
    event = WorkerEvent(
        type=event_type,
        worker=worker,
        timestamp_ms=now_ms(),
        sequence=sequence,
        payload=payload or {},
    )
    emitter.emit(event)


# Event type constants
class EventTypes:
    """Constants for event types."""

    # Runner lifecycle
    WORKER_STARTING = "worker.starting"
    WORKER_STOPPING = "worker.stopping"
    WORKER_STOPPED = "worker.stopped"

    # Schedule
    TICK_RECEIVED = "tick.received"

    # Work units
    UNIT_STARTED = "unit.started"
    UNIT_COMPLETED = "unit.completed"
    UNIT_FAILED = "unit.failed"
    UNIT_SKIPPED = "unit.skipped"

    # Host
    HOST_STARTED = "host.started"
    HOST_STOPPED = "host.stopped"
    RESOURCE_DISPOSED = "resource.disposed"
