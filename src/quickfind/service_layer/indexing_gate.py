"""Single-flight gate shared by manual and background index passes."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, TypeVar


if TYPE_CHECKING:
    from collections.abc import Callable


logger = logging.getLogger(__name__)

T = TypeVar("T")


class IndexingInProgressError(RuntimeError):
    """Raised when an index pass is requested while another one holds the gate."""


class IndexingGate:
    """A non-blocking, single-permit lock with an ``is_active`` query.

    Acquisition never waits: a caller that loses the race gets ``False``
    (or ``IndexingInProgressError`` from :meth:`run_in_thread`) and decides
    what to do.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def is_active(self) -> bool:
        return self._lock.locked()

    async def run_in_thread(self, operation: Callable[[], T]) -> T:
        """Run ``operation`` on a worker thread while holding the gate.

        The gate is released by the worker thread when ``operation`` returns
        or raises. Cancelling the awaiting coroutine does not stop the thread,
        so the gate stays held until the pass actually ends.

        Raises:
            IndexingInProgressError: if the gate is already held.
        """
        if not self.try_acquire():
            raise IndexingInProgressError("Indexing is already in progress")
        try:
            worker = asyncio.ensure_future(asyncio.to_thread(self._run_and_release, operation))
        except BaseException:
            self.release()
            raise

        try:
            return await asyncio.shield(worker)
        except asyncio.CancelledError:
            worker.add_done_callback(_log_detached_failure)
            raise

    def _run_and_release(self, operation: Callable[[], T]) -> T:
        try:
            return operation()
        finally:
            self.release()


def _log_detached_failure(worker: asyncio.Future) -> None:
    if worker.cancelled():
        return
    error = worker.exception()
    if error is not None:
        logger.error("Index pass failed after its caller was cancelled", exc_info=error)
