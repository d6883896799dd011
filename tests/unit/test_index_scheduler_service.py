"""Tests for IndexSchedulerService."""

import asyncio
import logging
import threading
from unittest.mock import MagicMock

import pytest

from quickfind.search.sqlite_storage import StorageError
from quickfind.service_layer.indexing_gate import IndexingGate
from quickfind.services.index_scheduler_service import IndexSchedulerService


@pytest.fixture
def indexer():
    mock = MagicMock()
    mock.full_index.return_value = 10
    mock.incremental_index.return_value = (9, 1)
    return mock


def _make_scheduler(indexer, gate=None, **kwargs):
    kwargs.setdefault("initial_delay_seconds", 0.01)
    kwargs.setdefault("interval_seconds", 0.01)
    return IndexSchedulerService(indexer, gate or IndexingGate(), **kwargs)


async def _wait_for(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.005)


class TestIndexSchedulerService:
    @pytest.mark.asyncio
    async def test_initial_full_then_periodic_incremental(self, indexer):
        scheduler = _make_scheduler(indexer)

        assert await scheduler.start()
        assert scheduler.running
        await _wait_for(lambda: scheduler.stats["total_runs"] >= 3)
        await scheduler.stop()

        indexer.full_index.assert_called_once_with()
        assert not scheduler.running
        stats = scheduler.stats
        assert stats["total_runs"] >= 3
        assert stats["errors"] == 0
        assert stats["last_result"] == {"mode": "incremental", "indexed": 9, "removed": 1}
        assert stats["last_run_at"] is not None

    @pytest.mark.asyncio
    async def test_initial_full_index_can_be_disabled(self, indexer):
        scheduler = _make_scheduler(indexer, run_initial_full_index=False)

        await scheduler.start()
        await _wait_for(lambda: indexer.incremental_index.call_count >= 1)
        await scheduler.stop()

        indexer.full_index.assert_not_called()

    @pytest.mark.asyncio
    async def test_disabled_scheduler_does_not_start(self, indexer):
        scheduler = _make_scheduler(indexer, enabled=False)

        assert await scheduler.start() is False
        assert not scheduler.running
        await scheduler.stop()
        indexer.full_index.assert_not_called()

    @pytest.mark.asyncio
    async def test_pass_skipped_while_gate_held(self, indexer):
        gate = IndexingGate()
        scheduler = _make_scheduler(indexer, gate)
        assert gate.try_acquire()
        try:
            assert await scheduler.run_incremental_pass() is False
        finally:
            gate.release()

        indexer.incremental_index.assert_not_called()
        assert scheduler.stats["skipped_runs"] == 1

    @pytest.mark.asyncio
    async def test_failure_is_logged_counted_and_loop_continues(self, indexer, caplog):
        outcomes = [StorageError("db locked")]

        def incremental():
            if outcomes:
                raise outcomes.pop()
            return (4, 0)

        indexer.incremental_index.side_effect = incremental
        gate = IndexingGate()
        scheduler = _make_scheduler(indexer, gate, run_initial_full_index=False)

        with caplog.at_level(logging.ERROR, logger="quickfind.services.index_scheduler_service"):
            await scheduler.start()
            await _wait_for(lambda: scheduler.stats["total_runs"] >= 1)
            await scheduler.stop()

        assert scheduler.stats["errors"] == 1
        assert "Background incremental index failed" in caplog.text
        assert not gate.is_active

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, indexer):
        scheduler = _make_scheduler(indexer, initial_delay_seconds=60)
        await scheduler.start()
        await scheduler.stop()
        await scheduler.stop()
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_stop_mid_pass_keeps_gate_until_thread_finishes(self, indexer):
        started = threading.Event()
        finish = threading.Event()

        def slow_full_index():
            started.set()
            finish.wait(timeout=5)
            return 10

        indexer.full_index.side_effect = slow_full_index
        gate = IndexingGate()
        scheduler = _make_scheduler(indexer, gate, initial_delay_seconds=60)

        await scheduler.start()
        await asyncio.to_thread(started.wait, 5)
        await scheduler.stop()

        assert gate.is_active
        assert not gate.try_acquire()

        finish.set()
        await _wait_for(lambda: not gate.is_active)
