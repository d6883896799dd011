"""Async boundary between a launcher UI and the blocking search core.

Every storage-touching call runs on a worker thread via ``asyncio.to_thread``
so the event loop stays responsive while an index pass holds the disk.
"""

from __future__ import annotations

import asyncio
import logging

from quickfind.adapters.shell import ShellIntegration, SystemShell
from quickfind.search.indexer import FileIndexer
from quickfind.search.models import SearchResult
from quickfind.search.searcher import FileSearcher
from quickfind.search.sqlite_storage import FileIndexStore, StorageError
from quickfind.service_layer.indexing_gate import IndexingGate
from quickfind.utils.math_eval import evaluate_math


logger = logging.getLogger(__name__)


class LauncherService:
    """High-level launcher API.

    Owns the ``IndexingGate``; pass the same gate to the background
    scheduler so manual rebuilds and periodic passes never overlap.
    """

    def __init__(
        self,
        store: FileIndexStore,
        searcher: FileSearcher,
        indexer: FileIndexer,
        *,
        shell: ShellIntegration | None = None,
        gate: IndexingGate | None = None,
    ) -> None:
        self.store = store
        self.searcher = searcher
        self.indexer = indexer
        self.shell = shell or SystemShell()
        self.gate = gate or IndexingGate()

    async def search(self, query: str) -> list[SearchResult]:
        if not query.strip():
            return []
        return await asyncio.to_thread(self.searcher.search, query)

    async def evaluate_math(self, query: str) -> str | None:
        return evaluate_math(query)

    async def launch_file(self, filepath: str) -> None:
        """Record the launch for ranking, then open the file.

        A failed click write is logged and does not block the launch.

        Raises:
            ShellError: if the path is missing or cannot be opened.
        """
        try:
            await asyncio.to_thread(self.searcher.record_click, filepath)
        except StorageError as exc:
            logger.error("Failed to record click for %s: %s", filepath, exc)

        await asyncio.to_thread(self.shell.launch, filepath)

    async def open_containing_folder(self, filepath: str) -> None:
        await asyncio.to_thread(self.shell.open_containing_folder, filepath)

    async def rebuild_index(self) -> int:
        """Run a full index pass and return the number of entries indexed.

        Raises:
            IndexingInProgressError: if another pass holds the gate, including
                a rebuild whose caller was cancelled but whose thread still runs.
            StorageError: if the pass fails outright.
        """
        logger.info("Manual index rebuild requested")
        count = await self.gate.run_in_thread(self.indexer.full_index)
        logger.info("Manual index rebuild complete: %d entries", count)
        return count

    async def get_index_count(self) -> int:
        return await asyncio.to_thread(self.store.count)

    async def is_indexing(self) -> bool:
        return self.gate.is_active
