from .resource import SharedResource
from .host import WorkerHost

__all__ = ["SharedResource", "WorkerHost"]
