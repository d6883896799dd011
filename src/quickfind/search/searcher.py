"""Two-phase search over the file index.

Phase 1 asks the store for prefix/substring candidates (over-fetching so
in-process boosts can reorder them). Phase 2 runs only when Phase 1 comes
up short: it fuzzy-matches every remaining filename in memory. Results are
deduplicated by id, sorted by descending score (ties by ascending id) and
capped.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import time

from quickfind.observability.metrics import SEARCH_LATENCY, SEARCH_RESULTS, track_latency
from quickfind.observability.tracing import create_span
from quickfind.search.fuzzy import fuzzy_match
from quickfind.search.models import MatchType, SearchResult
from quickfind.search.ranking import score_entry, score_exhaustive_fuzzy
from quickfind.search.sqlite_storage import FileIndexStore


logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 15
DEFAULT_CANDIDATE_MULTIPLIER = 3


class FileSearcher:
    """Rank indexed entries against interactive queries.

    Stateless between calls; safe to use concurrently with an index pass.
    """

    def __init__(
        self,
        store: FileIndexStore,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        candidate_multiplier: int = DEFAULT_CANDIDATE_MULTIPLIER,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.max_results = max_results
        self.candidate_multiplier = candidate_multiplier
        self._clock = clock

    def search(self, query: str, max_results: int | None = None) -> list[SearchResult]:
        """Return up to ``max_results`` ranked results for ``query``.

        Raises:
            StorageError: when the index cannot be read.
        """
        limit = self.max_results if max_results is None else max_results
        if not query.strip() or limit <= 0:
            return []

        query_lower = query.lower()
        now = self._clock()

        with create_span("search.query", attributes={"search.limit": limit}):
            with track_latency(SEARCH_LATENCY, phase="prefilter"):
                results, seen_ids = self._prefilter_phase(query_lower, limit, now)

            if len(results) < limit:
                with track_latency(SEARCH_LATENCY, phase="exhaustive"):
                    results.extend(self._exhaustive_phase(query_lower, seen_ids, now))

        results.sort(key=lambda result: (-result.score, result.id))
        ranked = results[:limit]
        SEARCH_RESULTS.labels().observe(len(ranked))
        logger.debug("Search returned %d of %d scored candidates", len(ranked), len(results))
        return ranked

    def _prefilter_phase(self, query_lower: str, limit: int, now: float) -> tuple[list[SearchResult], set[int]]:
        candidates = self.store.search(query_lower, limit * self.candidate_multiplier)
        results: list[SearchResult] = []
        seen_ids: set[int] = set()
        for entry in candidates:
            scored = score_entry(entry, query_lower, now)
            seen_ids.add(entry.entry_id)
            results.append(
                SearchResult(
                    id=entry.entry_id,
                    filename=entry.filename,
                    filepath=entry.filepath,
                    extension=entry.extension,
                    file_size=entry.file_size,
                    modified_at=entry.modified_at,
                    file_type=entry.file_type,
                    click_count=entry.click_count,
                    last_accessed=entry.last_accessed,
                    score=scored.score,
                    match_type=scored.match_type,
                    matched_indices=list(scored.matched_indices),
                )
            )
        return results, seen_ids

    def _exhaustive_phase(self, query_lower: str, seen_ids: set[int], now: float) -> list[SearchResult]:
        results: list[SearchResult] = []
        for summary in self.store.list_all():
            if summary.entry_id in seen_ids:
                continue
            match = fuzzy_match(summary.filename, query_lower)
            if match is None or match.score <= 0:
                continue
            seen_ids.add(summary.entry_id)
            results.append(
                SearchResult(
                    id=summary.entry_id,
                    filename=summary.filename,
                    filepath=summary.filepath,
                    modified_at=summary.modified_at,
                    file_type=summary.file_type,
                    click_count=summary.click_count,
                    last_accessed=summary.last_accessed,
                    score=score_exhaustive_fuzzy(
                        match.score, summary.file_type, summary.click_count, summary.last_accessed, now
                    ),
                    match_type=MatchType.FUZZY,
                    matched_indices=list(match.indices),
                )
            )
        return results

    def record_click(self, filepath: str) -> bool:
        """Record a launch; affects only future queries."""
        return self.store.record_click(filepath, now=int(self._clock()))
