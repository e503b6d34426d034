"""Configuration - tick worker service settings."""
import os
import sys
from dataclasses import dataclass

from dotenv import load_dotenv
from loguru import logger

from .worker.types import WorkerKind

load_dotenv()


@dataclass
class Settings:
    """Service settings."""

    # Server
    host: str = "0.0.0.0"
    port: int = 8790
    debug: bool = False
    log_level: str = "INFO"

    # Worker
    worker_kind: WorkerKind = WorkerKind.DRAINING
    tick_interval_seconds: float = 1.0
    work_duration_seconds: float = 2.0
    max_concurrency: int = 1

    # Shutdown
    shutdown_linger_seconds: float = 2.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            # Server
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8790")),
            debug=os.getenv("DEBUG", "").lower() in ("1", "true"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),

            # Worker
            worker_kind=WorkerKind(os.getenv("WORKER_KIND", "draining").lower()),
            tick_interval_seconds=float(os.getenv("TICK_INTERVAL_SECONDS", "1.0")),
            work_duration_seconds=float(os.getenv("WORK_DURATION_SECONDS", "2.0")),
            max_concurrency=int(os.getenv("MAX_CONCURRENCY", "1")),

            # Shutdown
            shutdown_linger_seconds=float(os.getenv("SHUTDOWN_LINGER_SECONDS", "2.0")),
        )


def configure_logging(level: str = "INFO") -> None:
    """Send loguru output to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level)


# Global settings instance
settings = Settings.from_env()
