"""Shared SQLite PRAGMA helpers for consistent performance tuning."""

from __future__ import annotations

import sqlite3


def apply_index_pragmas(
    conn: sqlite3.Connection,
    *,
    cache_size_kb: int = -64000,
    mmap_size_bytes: int = 268435456,
    temp_store: str = "MEMORY",
    busy_timeout_ms: int | None = 30000,
) -> None:
    """Apply PRAGMAs for bulk upserts plus low-latency interactive reads.

    WAL with NORMAL synchronous keeps committed transactions ordered and
    durable across application crashes; only an OS crash may lose the tail.
    """
    if busy_timeout_ms is not None:
        conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms}")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.execute(f"PRAGMA cache_size = {cache_size_kb}")
    conn.execute(f"PRAGMA temp_store = {temp_store}")
    conn.execute(f"PRAGMA mmap_size = {mmap_size_bytes}")
