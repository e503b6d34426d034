"""FastAPI entry point - hosts the tick worker."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from loguru import logger
from pydantic import BaseModel

from .config import configure_logging, settings
from .services.host import WorkerHost
from .services.resource import SharedResource
from .worker import Ticker, create_runner, simulated_work

# Global service instances
resource: Optional[SharedResource] = None
host: Optional[WorkerHost] = None


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    """Application lifecycle: start the worker, then stop it before disposal."""
    global resource, host

    configure_logging(settings.log_level)

    logger.info("=" * 50)
    logger.info("  Tick Worker")
    logger.info(f"  Worker kind: {settings.worker_kind.value}")
    logger.info(f"  Interval: {settings.tick_interval_seconds}s, work: {settings.work_duration_seconds}s")
    logger.info("=" * 50)

    resource = SharedResource()
    runner = create_runner(
        settings.worker_kind,
        simulated_work(Ticker(resource), settings.work_duration_seconds),
        interval=settings.tick_interval_seconds,
        max_concurrency=settings.max_concurrency,
    )
    host = WorkerHost(
        runner,
        resource,
        linger_seconds=settings.shutdown_linger_seconds,
    )

    await host.start()

    yield

    logger.info("Shutting down...")
    await host.shutdown()
    logger.info("Goodbye!")


app = FastAPI(
    title="Tick Worker",
    description="Periodic background worker with graceful shutdown",
    version="0.1.0",
    lifespan=lifespan,
)


# ============== Pydantic Models ==============

class RunnerStatusResponse(BaseModel):
    """Runner status response"""
    worker: str
    kind: str
    state: str
    dispatched: int
    completed: int
    failed: int
    skipped: int
    in_flight: int
    last_sequence: Optional[int] = None


class StatusResponse(BaseModel):
    """Service status response"""
    runner: RunnerStatusResponse
    resource_state: str
    ticks_recorded: int
    violations: int


# ============== Routes ==============

@app.get("/ping", response_class=PlainTextResponse)
async def ping():
    return "Pong"


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/status", response_model=StatusResponse)
async def status():
    """Runner counters and shared resource state."""
    runner_status = host.runner.status()
    return StatusResponse(
        runner=RunnerStatusResponse(**runner_status.to_dict()),
        resource_state=resource.state.value,
        ticks_recorded=len(resource.uses),
        violations=resource.violations,
    )


# ============== Entry point ==============

def main():
    """Run the FastAPI service"""
    import uvicorn

    uvicorn.run(
        "tickworker.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
