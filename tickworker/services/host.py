"""Worker host - owns the start / stop / dispose ordering."""
import asyncio

from loguru import logger

from ..worker.service.events import EventEmitter, EventTypes, emit_worker_event
from ..worker.service.runner import PeriodicRunner
from ..worker.types import RunnerState
from .resource import SharedResource

logger = logger.bind(module="services.host")


class WorkerHost:
    """Starts a runner and tears down its shared resource after it stops.

    Shutdown order: request stop, await the runner, then dispose the
    resource. Disposal is only safe if the runner's await genuinely waits
    for the work it dispatched.
    """

    def __init__(
        self,
        runner: PeriodicRunner,
        resource: SharedResource,
        linger_seconds: float = 0.0,
        events: EventEmitter | None = None,
        name: str = "host",
    ):
        """Initialize the host.

        Args:
            runner: Runner to drive
            resource: Shared resource disposed after the runner stops
            linger_seconds: Extra time to keep the loop alive after disposal,
                modelling cleanup the process does before exiting
            events: Event emitter, defaults to the runner's
            name: Host name used in logs and events
        """
        self.runner = runner
        self.resource = resource
        self.linger_seconds = linger_seconds
        self.events = events or runner.events
        self.name = name
        self._started = False
        self._shut_down = False

    @property
    def running(self) -> bool:
        return self._started and not self._shut_down

    async def start(self) -> None:
        """Start the runner."""
        if self._started:
            logger.warning("Host already started")
            return
        self._started = True
        await self.runner.start()
        emit_worker_event(self.events, EventTypes.HOST_STARTED, self.name)
        logger.info(f"Host started {self.runner.name}")

    async def shutdown(self) -> None:
        """Stop the runner, wait for it, then dispose the shared resource."""
        if not self._started or self._shut_down:
            logger.warning("Host not running, nothing to shut down")
            return
        self._shut_down = True

        if self.runner.state != RunnerState.STOPPED:
            self.runner.request_stop()
            await self.runner.await_stopped()

        self.resource.dispose()
        emit_worker_event(
            self.events,
            EventTypes.RESOURCE_DISPOSED,
            self.name,
            payload={"resource": self.resource.name, "in_flight": len(self.runner.runtime.in_flight)},
        )

        if self.linger_seconds > 0:
            logger.info(f"Simulating additional cleanup for {self.linger_seconds}s")
            await asyncio.sleep(self.linger_seconds)

        emit_worker_event(
            self.events,
            EventTypes.HOST_STOPPED,
            self.name,
            payload={"violations": self.resource.violations},
        )
        logger.info(f"Host stopped, {self.resource.violations} use(s) after disposal")
