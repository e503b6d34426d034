"""Shutdown demo comparing every runner strategy.

This example demonstrates:
- Host ordering: start, request stop, await stopped, then dispose
- Draining and loop runners finishing in-flight work before disposal
- Detaching and token-gated runners reporting stopped too early, so the
  straggling unit hits the disposed resource ("BOOM!")
"""
import asyncio
import os
import sys

from loguru import logger

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tickworker.config import configure_logging
from tickworker.services import SharedResource, WorkerHost
from tickworker.worker import Ticker, WorkerEvent, WorkerKind, create_runner, simulated_work

INTERVAL_SECONDS = 1.0
WORK_SECONDS = 1.5
RUN_SECONDS = 2.6
LINGER_SECONDS = 2.0


def print_event(event: WorkerEvent) -> None:
    logger.debug(f"[event] {event.type} seq={event.sequence} {event.payload}")


async def run_kind(kind: WorkerKind) -> int:
    """Run one strategy through a full host lifecycle.

    Returns:
        Number of calls that reached the resource after disposal
    """
    logger.info("=" * 60)
    logger.info(f"Worker kind: {kind.value}")
    logger.info("=" * 60)

    resource = SharedResource()
    runner = create_runner(
        kind,
        simulated_work(Ticker(resource), WORK_SECONDS),
        interval=INTERVAL_SECONDS,
    )
    runner.events.add_handler(print_event)
    host = WorkerHost(runner, resource, linger_seconds=LINGER_SECONDS)

    await host.start()
    await asyncio.sleep(RUN_SECONDS)
    await host.shutdown()

    return resource.violations


async def main():
    """Run every worker kind and summarize."""
    configure_logging("INFO")

    summary: dict[WorkerKind, int] = {}
    for kind in WorkerKind:
        summary[kind] = await run_kind(kind)

    logger.info("=" * 60)
    for kind, violations in summary.items():
        verdict = "OK" if violations == 0 else "BUG"
        logger.info(f"  {kind.value:<12} use-after-disposal: {violations}  [{verdict}]")
    logger.info("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
