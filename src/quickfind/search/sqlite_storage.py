"""SQLite-backed store for indexed filesystem entries and usage statistics.

A single connection guarded by a single lock serves both write paths (bulk
index upserts, click feedback) and the interactive read path:
- WAL mode with NORMAL synchronous for write throughput
- Large page cache, memory-mapped I/O, in-memory temp storage
- Batched upserts applied in one transaction each
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
import logging
import os
from pathlib import Path
import sqlite3
import threading
import time

from quickfind.search.models import EntrySummary, FileType, IndexedEntry
from quickfind.search.sqlite_pragmas import apply_index_pragmas


logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS files (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    filename TEXT NOT NULL,
    filepath TEXT NOT NULL UNIQUE,
    extension TEXT NOT NULL DEFAULT '',
    file_size INTEGER NOT NULL DEFAULT 0,
    modified_at INTEGER NOT NULL DEFAULT 0,
    file_type TEXT NOT NULL DEFAULT 'other',
    click_count INTEGER NOT NULL DEFAULT 0,
    last_accessed INTEGER NOT NULL DEFAULT 0,
    icon_path TEXT
);

CREATE INDEX IF NOT EXISTS idx_filename ON files(filename);
CREATE INDEX IF NOT EXISTS idx_filepath ON files(filepath);
CREATE INDEX IF NOT EXISTS idx_extension ON files(extension);
CREATE INDEX IF NOT EXISTS idx_file_type ON files(file_type);
CREATE INDEX IF NOT EXISTS idx_click_count ON files(click_count DESC);
CREATE INDEX IF NOT EXISTS idx_modified_at ON files(modified_at DESC);

CREATE TABLE IF NOT EXISTS index_meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_ENTRY_COLUMNS = (
    "id",
    "filename",
    "filepath",
    "extension",
    "file_size",
    "modified_at",
    "file_type",
    "click_count",
    "last_accessed",
    "icon_path",
)

# Conflicts never touch click_count or last_accessed.
_UPSERT_SQL = """
INSERT INTO files (filename, filepath, extension, file_size, modified_at, file_type)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT(filepath) DO UPDATE SET
    filename = excluded.filename,
    file_size = excluded.file_size,
    modified_at = excluded.modified_at,
    file_type = excluded.file_type
"""

_ENTRY_SELECT = ", ".join(_ENTRY_COLUMNS)

_SEARCH_SQL = f"""
SELECT {_ENTRY_SELECT},
       CASE
           WHEN LOWER(filename) = LOWER(:exact) THEN 100
           WHEN LOWER(filename) LIKE LOWER(:prefix) ESCAPE '\\' THEN 75
           WHEN LOWER(filename) LIKE LOWER(:contains) ESCAPE '\\' THEN 50
           WHEN LOWER(filepath) LIKE LOWER(:contains) ESCAPE '\\' THEN 25
           ELSE 0
       END AS match_score
FROM files
WHERE LOWER(filename) LIKE LOWER(:contains) ESCAPE '\\'
   OR LOWER(filepath) LIKE LOWER(:contains) ESCAPE '\\'
ORDER BY
    match_score DESC,
    CASE file_type
        WHEN 'app' THEN 5
        WHEN 'shortcut' THEN 4
        WHEN 'document' THEN 3
        WHEN 'folder' THEN 2
        ELSE 1
    END DESC,
    click_count DESC,
    last_accessed DESC,
    modified_at DESC
LIMIT :limit
"""


class StorageError(RuntimeError):
    """Raised when the index database cannot complete an operation."""


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters using backslash as the escape character."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _entry_params(entry: IndexedEntry) -> tuple[str, str, str, int, int, str]:
    return (
        entry.filename,
        entry.filepath,
        entry.extension,
        int(entry.file_size),
        int(entry.modified_at),
        FileType.parse(entry.file_type).value,
    )


def _row_to_entry(row: sqlite3.Row) -> IndexedEntry:
    return IndexedEntry(
        entry_id=row["id"],
        filename=row["filename"],
        filepath=row["filepath"],
        extension=row["extension"],
        file_size=row["file_size"],
        modified_at=row["modified_at"],
        file_type=FileType.parse(row["file_type"]),
        click_count=row["click_count"],
        last_accessed=row["last_accessed"],
        icon_path=row["icon_path"],
    )


class FileIndexStore:
    """Persist indexed entries and index metadata in one SQLite file."""

    LAST_FULL_INDEX_KEY = "last_full_index"
    LAST_INCREMENTAL_INDEX_KEY = "last_incremental_index"

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._lock = threading.Lock()
        self._conn = self._connect()
        self._initialize_schema()

    def _connect(self) -> sqlite3.Connection:
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            apply_index_pragmas(conn)
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Unable to open index database at {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        logger.debug("Opened index database at %s", self.db_path)
        return conn

    def _initialize_schema(self) -> None:
        with self._locked("schema bootstrap") as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _locked(self, operation: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as exc:
                raise StorageError(f"{operation} failed: {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> FileIndexStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ writes

    def upsert(self, entry: IndexedEntry) -> None:
        """Insert an entry or refresh its metadata, keeping usage statistics."""
        with self._locked("upsert") as conn, conn:
            conn.execute(_UPSERT_SQL, _entry_params(entry))

    def upsert_batch(self, entries: Iterable[IndexedEntry]) -> int:
        """Upsert many entries atomically; returns the number of entries written."""
        params = [_entry_params(entry) for entry in entries]
        if not params:
            return 0
        with self._locked("batch upsert") as conn, conn:
            conn.executemany(_UPSERT_SQL, params)
        return len(params)

    def record_click(self, filepath: str, *, now: int | None = None) -> bool:
        """Bump the usage counter for ``filepath``; False when it is not indexed."""
        timestamp = int(time.time()) if now is None else int(now)
        with self._locked("record click") as conn, conn:
            cursor = conn.execute(
                "UPDATE files SET click_count = click_count + 1, last_accessed = ? WHERE filepath = ?",
                (timestamp, filepath),
            )
        return cursor.rowcount > 0

    def reconcile_missing(self) -> int:
        """Delete rows whose path no longer exists on disk; returns the count removed.

        Existence checks run outside the lock; the deletions commit as one
        transaction.
        """
        with self._locked("list paths") as conn:
            paths = [row[0] for row in conn.execute("SELECT filepath FROM files")]

        missing = [(path,) for path in paths if not os.path.exists(path)]
        if not missing:
            return 0

        with self._locked("remove missing") as conn, conn:
            cursor = conn.executemany("DELETE FROM files WHERE filepath = ?", missing)
        removed = max(cursor.rowcount, 0)
        logger.debug("Reconciliation removed %d of %d entries", removed, len(paths))
        return removed

    def set_meta(self, key: str, value: str) -> None:
        with self._locked("set meta") as conn, conn:
            conn.execute(
                "INSERT INTO index_meta (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    # ------------------------------------------------------------------- reads

    def get_meta(self, key: str) -> str | None:
        with self._locked("get meta") as conn:
            row = conn.execute("SELECT value FROM index_meta WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def count(self) -> int:
        with self._locked("count") as conn:
            row = conn.execute("SELECT COUNT(*) FROM files").fetchone()
        return int(row[0])

    def search(self, query_lower: str, limit: int) -> list[IndexedEntry]:
        """Return up to ``limit`` entries whose filename or path contains the query.

        Rows come back ordered by match tier (exact, prefix, substring, path),
        then file-type priority, click count, last access and modification time.
        """
        if limit <= 0:
            return []
        escaped = escape_like(query_lower)
        params = {
            "exact": query_lower,
            "prefix": f"{escaped}%",
            "contains": f"%{escaped}%",
            "limit": int(limit),
        }
        with self._locked("search") as conn:
            rows = conn.execute(_SEARCH_SQL, params).fetchall()
        return [_row_to_entry(row) for row in rows]

    def list_all(self) -> list[EntrySummary]:
        """Return every entry's searchable fields. Full-table read."""
        with self._locked("list all") as conn:
            rows = conn.execute(
                "SELECT id, filename, filepath, file_type, click_count, last_accessed, modified_at FROM files"
            ).fetchall()
        return [
            EntrySummary(
                entry_id=row["id"],
                filename=row["filename"],
                filepath=row["filepath"],
                file_type=FileType.parse(row["file_type"]),
                click_count=row["click_count"],
                last_accessed=row["last_accessed"],
                modified_at=row["modified_at"],
            )
            for row in rows
        ]

    def get_by_id(self, entry_id: int) -> IndexedEntry | None:
        with self._locked("get by id") as conn:
            row = conn.execute(
                f"SELECT {_ENTRY_SELECT} FROM files WHERE id = ?", (entry_id,)
            ).fetchone()
        return _row_to_entry(row) if row else None

    def get_by_path(self, filepath: str) -> IndexedEntry | None:
        with self._locked("get by path") as conn:
            row = conn.execute(
                f"SELECT {_ENTRY_SELECT} FROM files WHERE filepath = ?", (filepath,)
            ).fetchone()
        return _row_to_entry(row) if row else None
