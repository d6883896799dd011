"""Long-running background services."""

from .index_scheduler_service import IndexSchedulerService


__all__ = [
    "IndexSchedulerService",
]
