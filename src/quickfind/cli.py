"""Operator CLI for the file index.

Examples:
  python -m quickfind index
  python -m quickfind index --incremental --root ~/Projects
  python -m quickfind index --metrics
  python -m quickfind search "rpt"
  python -m quickfind calc "(2 + 3) * 4"
"""

# ruff: noqa: T201  # CLI intentionally prints operator feedback

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path
import sys
import textwrap
import time

from pydantic import ValidationError

from quickfind.config import Settings
from quickfind.observability.logging import configure_logging
from quickfind.observability.metrics import get_metrics
from quickfind.search.indexer import FileIndexer
from quickfind.search.searcher import FileSearcher
from quickfind.search.sqlite_storage import FileIndexStore, StorageError
from quickfind.utils.math_eval import evaluate_math


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quickfind",
        description="Build and query the quickfind file index",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(
            """
            Settings come from QUICKFIND_* environment variables (or .env);
            --db and --root override them for a single run.
            """
        ).strip(),
    )
    parser.add_argument("--db", type=Path, help="Index database path (default: QUICKFIND_DB_PATH)")
    parser.add_argument("--log-level", help="Log level override (default: QUICKFIND_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    index_parser = subparsers.add_parser("index", help="Walk the index roots and update the database")
    index_parser.add_argument(
        "--root",
        dest="roots",
        action="append",
        type=Path,
        metavar="PATH",
        help="Directory to index. Pass multiple times; defaults to configured roots",
    )
    index_parser.add_argument(
        "--incremental",
        action="store_true",
        help="Drop entries whose files vanished before re-walking",
    )
    index_parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print the Prometheus exposition for the pass when it finishes",
    )

    search_parser = subparsers.add_parser("search", help="Run a query against the index")
    search_parser.add_argument("query")
    search_parser.add_argument("--limit", type=int, default=None, help="Maximum results (default: QUICKFIND_MAX_RESULTS)")

    subparsers.add_parser("count", help="Print the number of indexed entries")

    calc_parser = subparsers.add_parser("calc", help="Evaluate an arithmetic expression")
    calc_parser.add_argument("expression")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    if args.command == "calc":
        result = evaluate_math(args.expression)
        if result is None:
            print(f"Not a valid expression: {args.expression}", file=sys.stderr)
            return 1
        print(result)
        return 0

    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    configure_logging(args.log_level or settings.log_level, json_output=settings.log_json)
    db_path = args.db or settings.db_path

    try:
        with FileIndexStore(db_path) as store:
            if args.command == "index":
                return _run_index(store, settings, args)
            if args.command == "search":
                return _run_search(store, settings, args)
            print(store.count())
            return 0
    except StorageError as exc:
        print(f"Index error: {exc}", file=sys.stderr)
        return 1


def _run_index(store: FileIndexStore, settings: Settings, args: argparse.Namespace) -> int:
    roots = args.roots or settings.get_index_roots()
    indexer = FileIndexer(
        store,
        roots,
        skip_dirs=settings.get_skip_dirs(),
        max_depth=settings.max_depth,
        batch_size=settings.batch_size,
        follow_symlinks=settings.follow_symlinks,
    )

    print("=== quickfind indexing ===")
    for root in roots:
        print(f"Root: {root}")
    print()

    started = time.perf_counter()
    if args.incremental:
        indexed, removed = indexer.incremental_index()
        print(f"Indexed {indexed} entries, removed {removed} in {time.perf_counter() - started:.2f}s")
    else:
        indexed = indexer.full_index()
        print(f"Indexed {indexed} entries in {time.perf_counter() - started:.2f}s")
    if args.metrics:
        print()
        print(get_metrics().decode("utf-8"), end="")
    return 0


def _run_search(store: FileIndexStore, settings: Settings, args: argparse.Namespace) -> int:
    searcher = FileSearcher(
        store,
        max_results=settings.max_results,
        candidate_multiplier=settings.candidate_multiplier,
    )
    results = searcher.search(args.query, args.limit)
    if not results:
        print("No matches.")
        return 0
    for result in results:
        print(f"{result.score:8.1f}  {result.match_type.value:<9} {result.file_type.value:<8} {result.filepath}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
