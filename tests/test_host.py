"""Tests for the worker host ordering contract."""

import asyncio

import pytest

from tickworker.services.host import WorkerHost
from tickworker.services.resource import SharedResource
from tickworker.worker.service.events import EventEmitter, EventTypes
from tickworker.worker.service.strategies import DrainingRunner
from tickworker.worker.ticker import Ticker, simulated_work
from tickworker.worker.types import RunnerState


def make_host(resource: SharedResource, recorder, linger_seconds: float = 0.0, **kwargs) -> WorkerHost:
    events = EventEmitter()
    events.add_handler(recorder)
    kwargs.setdefault("interval", 0.02)
    runner = DrainingRunner(simulated_work(Ticker(resource), 0.05), events=events, **kwargs)
    return WorkerHost(runner, resource, linger_seconds=linger_seconds)


class TestWorkerHost:
    @pytest.mark.anyio
    async def test_start_runs_the_runner(self, resource: SharedResource, recorder) -> None:
        host = make_host(resource, recorder)

        await host.start()
        assert host.running
        assert host.runner.state == RunnerState.RUNNING

        await recorder.wait_for(EventTypes.UNIT_COMPLETED)
        await host.shutdown()

        assert not host.running
        assert resource.uses[0] == 0

    @pytest.mark.anyio
    async def test_dispose_happens_after_runner_stopped(self, resource: SharedResource, recorder) -> None:
        host = make_host(resource, recorder)
        await host.start()
        await recorder.wait_for(EventTypes.UNIT_STARTED)

        await host.shutdown()

        assert host.runner.state == RunnerState.STOPPED
        assert resource.disposed
        assert recorder.types[-3:] == [
            EventTypes.WORKER_STOPPED,
            EventTypes.RESOURCE_DISPOSED,
            EventTypes.HOST_STOPPED,
        ]
        assert recorder.of_type(EventTypes.RESOURCE_DISPOSED)[0].payload["in_flight"] == 0

    @pytest.mark.anyio
    async def test_units_see_active_resource_until_they_finish(self, resource: SharedResource, recorder) -> None:
        observed = []

        async def work(sequence: int) -> None:
            await asyncio.sleep(0.05)
            observed.append(resource.disposed)
            resource.use(sequence)

        events = EventEmitter()
        events.add_handler(recorder)
        host = WorkerHost(DrainingRunner(work, interval=0.01, events=events), resource)

        await host.start()
        await recorder.wait_for(EventTypes.UNIT_STARTED, count=2)
        await host.shutdown()

        assert observed
        assert not any(observed)
        assert resource.violations == 0

    @pytest.mark.anyio
    async def test_shutdown_lingers_after_disposal(self, resource: SharedResource, recorder) -> None:
        host = make_host(resource, recorder, linger_seconds=0.1, interval=10.0)
        await host.start()

        loop = asyncio.get_running_loop()
        started = loop.time()
        await host.shutdown()

        assert loop.time() - started >= 0.09
        stopped = recorder.of_type(EventTypes.HOST_STOPPED)[0]
        assert stopped.payload == {"violations": 0}

    @pytest.mark.anyio
    async def test_shutdown_before_start_is_noop(self, resource: SharedResource, recorder) -> None:
        host = make_host(resource, recorder)

        await host.shutdown()

        assert not resource.disposed
        assert host.runner.state == RunnerState.IDLE

    @pytest.mark.anyio
    async def test_shutdown_twice_is_noop(self, resource: SharedResource, recorder) -> None:
        host = make_host(resource, recorder, interval=10.0)
        await host.start()

        await host.shutdown()
        await host.shutdown()

        assert recorder.types.count(EventTypes.HOST_STOPPED) == 1

    @pytest.mark.anyio
    async def test_start_twice_is_noop(self, resource: SharedResource, recorder) -> None:
        host = make_host(resource, recorder, interval=10.0)

        await host.start()
        await host.start()
        await host.shutdown()

        assert recorder.types.count(EventTypes.HOST_STARTED) == 1

    @pytest.mark.anyio
    async def test_shutdown_of_already_stopped_runner_still_disposes(
        self, resource: SharedResource, recorder
    ) -> None:
        host = make_host(resource, recorder, interval=10.0)
        await host.start()
        await host.runner.stop()

        await host.shutdown()

        assert resource.disposed
