"""Work unit body: report a sequence number through the shared resource."""
import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable

if TYPE_CHECKING:
    from ..services.resource import SharedResource

# A work callable receives the unit's sequence number
WorkFunc = Callable[[int], Awaitable[object]]


class Ticker:
    """Records one sequence number per work unit."""

    def __init__(self, resource: "SharedResource"):
        self.resource = resource

    def tick(self, sequence: int) -> None:
        """Report a sequence number.

        UsedAfterDisposal from the resource propagates unchanged.
        """
        self.resource.use(sequence)


def simulated_work(ticker: Ticker, duration: float = 1.0) -> WorkFunc:
    """Build a work callable that simulates I/O that can't be cancelled.

    Args:
        ticker: Ticker to report through once the simulated I/O finishes
        duration: Seconds the simulated I/O takes

    Returns:
        Async callable taking the unit's sequence number
    """
    async def work(sequence: int) -> None:
        await asyncio.sleep(duration)
        ticker.tick(sequence)

    return work
