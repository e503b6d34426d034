"""Shared pytest fixtures for tickworker tests."""

import asyncio

import pytest

from tickworker.services.resource import SharedResource
from tickworker.worker.ticker import Ticker
from tickworker.worker.types import WorkerEvent


@pytest.fixture()
def anyio_backend() -> str:
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture()
def resource() -> SharedResource:
    return SharedResource()


@pytest.fixture()
def ticker(resource: SharedResource) -> Ticker:
    return Ticker(resource)


class EventRecorder:
    """Event handler that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[WorkerEvent] = []

    def __call__(self, event: WorkerEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[str]:
        return [event.type for event in self.events]

    def of_type(self, event_type: str) -> list[WorkerEvent]:
        return [event for event in self.events if event.type == event_type]

    async def wait_for(self, event_type: str, count: int = 1, timeout: float = 2.0) -> None:
        """Wait until at least `count` events of a type were recorded."""

        async def _poll() -> None:
            while len(self.of_type(event_type)) < count:
                await asyncio.sleep(0.005)

        await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.fixture()
def recorder() -> EventRecorder:
    return EventRecorder()
