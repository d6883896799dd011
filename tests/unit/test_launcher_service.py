"""Tests for the async launcher boundary."""

import asyncio
import threading
from unittest.mock import MagicMock

import pytest

from quickfind.adapters.shell import ShellError
from quickfind.search.indexer import FileIndexer
from quickfind.search.searcher import FileSearcher
from quickfind.search.sqlite_storage import StorageError
from quickfind.service_layer.indexing_gate import IndexingGate, IndexingInProgressError
from quickfind.service_layer.launcher_service import LauncherService


NOW = 1_700_000_000.0


@pytest.fixture
def shell():
    return MagicMock()


@pytest.fixture
def tree(build_tree):
    return build_tree(["chrome.exe", "notes.txt", "docs/report.pdf"])


@pytest.fixture
def service(store, tree, shell):
    searcher = FileSearcher(store, clock=lambda: NOW)
    indexer = FileIndexer(store, [tree], clock=lambda: NOW)
    return LauncherService(store, searcher, indexer, shell=shell)


@pytest.mark.asyncio
async def test_rebuild_then_search(service):
    count = await service.rebuild_index()

    assert count == 5
    assert await service.get_index_count() == 5
    results = await service.search("chrome")
    assert results[0].filename == "chrome.exe"


@pytest.mark.asyncio
async def test_blank_search_returns_empty(service):
    await service.rebuild_index()
    assert await service.search("  ") == []


@pytest.mark.asyncio
async def test_evaluate_math(service):
    assert await service.evaluate_math("(2 + 3) * 4") == "20"
    assert await service.evaluate_math("chrome") is None


@pytest.mark.asyncio
async def test_launch_records_click_then_delegates(service, store, tree, shell):
    await service.rebuild_index()
    target = str(tree / "notes.txt")

    await service.launch_file(target)

    shell.launch.assert_called_once_with(target)
    assert store.get_by_path(target).click_count == 1


@pytest.mark.asyncio
async def test_launch_survives_click_failure(service, shell, monkeypatch, caplog):
    def failing_click(_filepath):
        raise StorageError("locked")

    monkeypatch.setattr(service.searcher, "record_click", failing_click)

    await service.launch_file("/some/file")

    shell.launch.assert_called_once_with("/some/file")
    assert "Failed to record click" in caplog.text


@pytest.mark.asyncio
async def test_launch_propagates_shell_error(service, shell):
    shell.launch.side_effect = ShellError("File not found: /missing")

    with pytest.raises(ShellError):
        await service.launch_file("/missing")


@pytest.mark.asyncio
async def test_open_containing_folder_delegates(service, shell):
    await service.open_containing_folder("/a/b.txt")
    shell.open_containing_folder.assert_called_once_with("/a/b.txt")


@pytest.mark.asyncio
async def test_rebuild_rejected_while_gate_held(service):
    assert service.gate.try_acquire()
    try:
        assert await service.is_indexing()
        with pytest.raises(IndexingInProgressError):
            await service.rebuild_index()
    finally:
        service.gate.release()
    assert not await service.is_indexing()


@pytest.mark.asyncio
async def test_gate_released_after_failed_rebuild(service, monkeypatch):
    def broken_index():
        raise StorageError("disk gone")

    monkeypatch.setattr(service.indexer, "full_index", broken_index)

    with pytest.raises(StorageError):
        await service.rebuild_index()
    assert not await service.is_indexing()


@pytest.mark.asyncio
async def test_is_indexing_true_during_rebuild(store, tree, shell):
    started = threading.Event()
    finish = threading.Event()

    class SlowIndexer(FileIndexer):
        def full_index(self):
            started.set()
            finish.wait(timeout=5)
            return super().full_index()

    service = LauncherService(
        store,
        FileSearcher(store),
        SlowIndexer(store, [tree]),
        shell=shell,
        gate=IndexingGate(),
    )

    rebuild = asyncio.create_task(service.rebuild_index())
    await asyncio.to_thread(started.wait, 5)

    assert await service.is_indexing()
    # Searches are not blocked by an in-flight rebuild
    assert await service.search("chrome") == []

    finish.set()
    assert await rebuild == 5
    assert not await service.is_indexing()


@pytest.mark.asyncio
async def test_cancelled_rebuild_keeps_gate_until_pass_ends(store, tree, shell):
    started = threading.Event()
    finish = threading.Event()

    class CountingIndexer(FileIndexer):
        running = 0
        max_running = 0

        def full_index(self):
            type(self).running += 1
            type(self).max_running = max(type(self).max_running, type(self).running)
            try:
                started.set()
                finish.wait(timeout=5)
                return super().full_index()
            finally:
                type(self).running -= 1

    indexer = CountingIndexer(store, [tree])
    service = LauncherService(store, FileSearcher(store), indexer, shell=shell)

    rebuild = asyncio.create_task(service.rebuild_index())
    await asyncio.to_thread(started.wait, 5)
    rebuild.cancel()
    with pytest.raises(asyncio.CancelledError):
        await rebuild

    assert await service.is_indexing()
    with pytest.raises(IndexingInProgressError):
        await service.rebuild_index()

    finish.set()
    for _ in range(400):
        if not await service.is_indexing():
            break
        await asyncio.sleep(0.005)

    assert not await service.is_indexing()
    assert indexer.max_running == 1
    assert await service.rebuild_index() == 5
