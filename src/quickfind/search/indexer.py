"""Filesystem indexer that populates the file index.

The indexer walks a fixed set of root directories with a bounded depth,
prunes hidden and skip-listed directories, classifies every entry it can
stat, and writes results to the store in fixed-size batches. Traversal is
best-effort: unreadable entries are skipped and a failed batch flush is
logged without aborting the walk.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
import errno
import logging
import os
from pathlib import Path
import stat
import time

from quickfind.observability.metrics import INDEX_ERRORS, INDEX_RUN_LATENCY, INDEXED_ENTRIES, track_latency
from quickfind.observability.tracing import create_span
from quickfind.roots import DEFAULT_SKIP_DIRS
from quickfind.search.classifier import classify_file
from quickfind.search.models import IndexedEntry
from quickfind.search.sqlite_storage import FileIndexStore, StorageError


logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 6
DEFAULT_BATCH_SIZE = 500

_IGNORED_ERRNOS = frozenset({errno.EACCES, errno.EPERM, errno.ENOENT})
# Windows: access denied, sharing violation, file cannot be accessed by the system
_IGNORED_WINERRORS = frozenset({5, 32, 1920, 1921})


def split_extension(filename: str) -> str:
    """Return the lower-cased suffix after the last dot, or ``""``.

    Examples:
        >>> split_extension("Report.PDF")
        'pdf'
        >>> split_extension(".bashrc")
        ''
    """
    return Path(filename).suffix[1:].lower()


def is_ignorable_walk_error(error: OSError) -> bool:
    """True for permission, vanished-file and known platform "inaccessible" errors."""
    if isinstance(error, (PermissionError, FileNotFoundError)):
        return True
    if error.errno in _IGNORED_ERRNOS:
        return True
    return getattr(error, "winerror", None) in _IGNORED_WINERRORS


def build_entry(path: str, stat_result: os.stat_result) -> IndexedEntry:
    """Derive an entry from a path and its stat result."""
    filename = os.path.basename(path)
    extension = split_extension(filename)
    is_file = stat.S_ISREG(stat_result.st_mode)
    modified_at = int(stat_result.st_mtime) if stat_result.st_mtime > 0 else 0
    return IndexedEntry(
        filename=filename,
        filepath=path,
        extension=extension,
        file_size=int(stat_result.st_size) if is_file else 0,
        modified_at=modified_at,
        file_type=classify_file(extension, path),
    )


class FileIndexer:
    """Walk root directories and bulk-upsert what it finds."""

    def __init__(
        self,
        store: FileIndexStore,
        roots: Sequence[Path | str],
        *,
        skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
        max_depth: int = DEFAULT_MAX_DEPTH,
        batch_size: int = DEFAULT_BATCH_SIZE,
        follow_symlinks: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = store
        self.roots = tuple(Path(root) for root in roots)
        self.skip_dirs = frozenset(name.lower() for name in skip_dirs)
        self.max_depth = max_depth
        self.batch_size = batch_size
        self.follow_symlinks = follow_symlinks
        self._clock = clock

    def existing_roots(self) -> list[Path]:
        roots: list[Path] = []
        for root in self.roots:
            if root.is_dir():
                roots.append(root)
            else:
                logger.debug("Skipping missing index root %s", root)
        return roots

    def should_skip_dir(self, name: str) -> bool:
        return name.startswith(".") or name.lower() in self.skip_dirs

    def iter_entries(self, root: Path) -> Iterator[IndexedEntry]:
        """Yield ``root`` and the entries below it, at most ``max_depth`` levels deep.

        Each pending directory carries the ``(st_dev, st_ino)`` keys of its
        ancestors. A followed symlink that resolves to one of them is yielded
        but not entered; aliases of unrelated directories are walked in full.
        """
        root_path = os.fspath(root)
        root_entry = self._stat_entry(root_path)
        if root_entry is not None:
            yield root_entry

        stack: list[tuple[str, int, frozenset[tuple[int, int]]]] = [(root_path, 1, frozenset())]
        while stack:
            dirpath, depth, ancestors = stack.pop()
            if depth > self.max_depth:
                continue
            if self.follow_symlinks:
                try:
                    dir_stat = os.stat(dirpath)
                except OSError as exc:
                    self._on_walk_error(exc)
                    continue
                key = (dir_stat.st_dev, dir_stat.st_ino)
                if key in ancestors:
                    logger.debug("Not descending into symlink loop at %s", dirpath)
                    continue
                ancestors = ancestors | {key}

            try:
                with os.scandir(dirpath) as scan:
                    children = list(scan)
            except OSError as exc:
                self._on_walk_error(exc)
                continue

            subdirs: list[str] = []
            for child in children:
                if self._is_dir(child):
                    if self.should_skip_dir(child.name):
                        continue
                    if self.follow_symlinks or not child.is_symlink():
                        subdirs.append(child.path)
                entry = self._stat_entry(child.path)
                if entry is not None:
                    yield entry

            stack.extend((subdir, depth + 1, ancestors) for subdir in reversed(subdirs))

    @staticmethod
    def _is_dir(child: os.DirEntry) -> bool:
        try:
            return child.is_dir()
        except OSError:
            return False

    def _stat_entry(self, path: str) -> IndexedEntry | None:
        try:
            stat_result = os.stat(path) if self.follow_symlinks else os.lstat(path)
        except OSError as exc:
            self._on_walk_error(exc)
            return None
        return build_entry(path, stat_result)

    def _on_walk_error(self, error: OSError) -> None:
        if is_ignorable_walk_error(error):
            logger.debug("Skipping inaccessible path %s: %s", error.filename, error)
            return
        INDEX_ERRORS.labels(kind="walk").inc()
        logger.warning("Walk error at %s: %s", error.filename, error)

    def _flush(self, batch: list[IndexedEntry]) -> None:
        try:
            self.store.upsert_batch(batch)
        except StorageError as exc:
            INDEX_ERRORS.labels(kind="flush").inc()
            logger.error("Failed to upsert batch of %d entries: %s", len(batch), exc)

    def full_index(self) -> int:
        """Walk every root, upsert everything found, and return the entry count."""
        roots = self.existing_roots()
        logger.info("Starting full index of %d directories", len(roots))

        total_indexed = 0
        batch: list[IndexedEntry] = []
        with create_span("index.full", attributes={"index.roots": len(roots)}), track_latency(
            INDEX_RUN_LATENCY, mode="full"
        ):
            for root in roots:
                logger.info("Indexing directory: %s", root)
                for entry in self.iter_entries(root):
                    batch.append(entry)
                    if len(batch) >= self.batch_size:
                        self._flush(batch)
                        total_indexed += len(batch)
                        batch = []

            if batch:
                self._flush(batch)
                total_indexed += len(batch)

        self._record_timestamp(FileIndexStore.LAST_FULL_INDEX_KEY)
        INDEXED_ENTRIES.labels().set(total_indexed)
        logger.info("Full index complete: %d entries indexed", total_indexed)
        return total_indexed

    def incremental_index(self) -> tuple[int, int]:
        """Drop vanished entries, then re-walk every root; returns (indexed, removed).

        Not a differential scan: the walk after reconciliation is a complete
        ``full_index``.

        Raises:
            StorageError: when reconciliation cannot read or delete rows.
        """
        logger.info("Starting incremental index")
        with track_latency(INDEX_RUN_LATENCY, mode="incremental"):
            removed = self.store.reconcile_missing()
            if removed:
                logger.info("Removed %d missing entries from index", removed)
            indexed = self.full_index()

        self._record_timestamp(FileIndexStore.LAST_INCREMENTAL_INDEX_KEY)
        return indexed, removed

    def _record_timestamp(self, key: str) -> None:
        try:
            self.store.set_meta(key, str(int(self._clock())))
        except StorageError as exc:
            logger.warning("Failed to record %s: %s", key, exc)
