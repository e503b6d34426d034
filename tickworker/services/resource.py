"""Shared resource - process-wide dependency with an explicit disposed state."""
from typing import Any

from loguru import logger

from ..worker.errors import UsedAfterDisposal
from ..worker.types import ResourceState

logger = logger.bind(module="services.resource")


class SharedResource:
    """A singleton dependency owned by the host.

    The resource has no internal synchronization. It relies on the host to
    dispose it only after every work unit that may call it has finished.
    Calls made after disposal are rejected and counted as violations.
    """

    def __init__(self, name: str = "ticker-singleton"):
        self.name = name
        self._state = ResourceState.ACTIVE
        self._uses: list[Any] = []
        self._violations = 0

    @property
    def state(self) -> ResourceState:
        return self._state

    @property
    def disposed(self) -> bool:
        return self._state == ResourceState.DISPOSED

    @property
    def uses(self) -> list[Any]:
        """Payloads accepted while active, in call order."""
        return list(self._uses)

    @property
    def violations(self) -> int:
        """Number of calls rejected because the resource was disposed."""
        return self._violations

    def use(self, payload: Any) -> None:
        """Perform the resource's effect for a payload.

        Raises:
            UsedAfterDisposal: If the resource was already disposed
        """
        if self._state == ResourceState.DISPOSED:
            self._violations += 1
            logger.error(f"BOOM! {self.name} is called after disposal (payload={payload})")
            raise UsedAfterDisposal(self.name, payload)

        self._uses.append(payload)
        logger.info(f"tick {payload}")

    def dispose(self) -> None:
        """Dispose the resource. Subsequent calls are no-ops."""
        if self._state == ResourceState.DISPOSED:
            return
        logger.info(f"{self.name} is being disposed")
        self._state = ResourceState.DISPOSED
