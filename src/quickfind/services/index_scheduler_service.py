"""Background re-indexer: one full pass at startup, then periodic incremental passes."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from datetime import datetime, timezone
import logging
from typing import Any

from quickfind.observability.metrics import INDEX_ERRORS
from quickfind.search.indexer import FileIndexer
from quickfind.service_layer.indexing_gate import IndexingGate, IndexingInProgressError


logger = logging.getLogger(__name__)


class IndexSchedulerService:
    """Drive ``FileIndexer`` from an asyncio task.

    Passes share ``gate`` with manual rebuilds; a tick that finds the gate
    held is skipped rather than queued.
    """

    def __init__(
        self,
        indexer: FileIndexer,
        gate: IndexingGate,
        *,
        initial_delay_seconds: float = 120.0,
        interval_seconds: float = 300.0,
        enabled: bool = True,
        run_initial_full_index: bool = True,
    ) -> None:
        self.indexer = indexer
        self.gate = gate
        self.initial_delay_seconds = initial_delay_seconds
        self.interval_seconds = interval_seconds
        self.enabled = enabled
        self.run_initial_full_index = run_initial_full_index

        self._scheduler_task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

        self._total_runs = 0
        self._skipped_runs = 0
        self._errors = 0
        self._last_run_at: datetime | None = None
        self._last_result: dict[str, Any] | None = None

    @property
    def running(self) -> bool:
        return self._scheduler_task is not None and not self._scheduler_task.done()

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "total_runs": self._total_runs,
            "skipped_runs": self._skipped_runs,
            "errors": self._errors,
            "last_run_at": self._last_run_at.isoformat() if self._last_run_at else None,
            "last_result": self._last_result,
        }

    async def start(self) -> bool:
        if not self.enabled:
            logger.debug("Background indexing disabled; not starting scheduler")
            return False
        if self.running:
            return True

        self._stop_event.clear()
        self._scheduler_task = asyncio.create_task(self._run_loop())
        return True

    async def stop(self) -> None:
        self._stop_event.set()
        if self._scheduler_task is not None:
            self._scheduler_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._scheduler_task
            self._scheduler_task = None

    async def run_full_pass(self) -> bool:
        """Run one gated full index; False when skipped or failed."""
        return await self._run_gated("full", self.indexer.full_index)

    async def run_incremental_pass(self) -> bool:
        """Run one gated incremental index; False when skipped or failed."""
        return await self._run_gated("incremental", self.indexer.incremental_index)

    async def _run_loop(self) -> None:
        try:
            if self.run_initial_full_index:
                await self.run_full_pass()

            delay = self.initial_delay_seconds
            while not await self._wait_or_stop(delay):
                await self.run_incremental_pass()
                delay = self.interval_seconds
        finally:
            logger.debug("Index scheduler loop exited")

    async def _wait_or_stop(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True if stop was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _run_gated(self, mode: str, operation) -> bool:
        try:
            result = await self.gate.run_in_thread(operation)
        except IndexingInProgressError:
            self._skipped_runs += 1
            logger.info("Skipping background %s index: indexing already in progress", mode)
            return False
        except Exception:
            self._errors += 1
            INDEX_ERRORS.labels(kind="background").inc()
            logger.exception("Background %s index failed", mode)
            return False

        self._total_runs += 1
        self._last_run_at = datetime.now(timezone.utc)
        if mode == "full":
            self._last_result = {"mode": mode, "indexed": result}
            logger.info("Background full index: %d entries indexed", result)
        else:
            indexed, removed = result
            self._last_result = {"mode": mode, "indexed": indexed, "removed": removed}
            logger.info("Background index: %d files indexed, %d removed", indexed, removed)
        return True
