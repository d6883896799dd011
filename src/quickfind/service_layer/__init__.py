"""Service layer - use cases exposed to a launcher host."""

from .indexing_gate import IndexingGate, IndexingInProgressError
from .launcher_service import LauncherService


__all__ = [
    "IndexingGate",
    "IndexingInProgressError",
    "LauncherService",
]
