"""Tests for two-phase search, ranking order, dedup and the result cap."""

import pytest

from quickfind.search.models import FileType, MatchType
from quickfind.search.searcher import FileSearcher
from quickfind.search.sqlite_storage import FileIndexStore, StorageError


NOW = 1_700_000_000.0


@pytest.fixture
def searcher(store):
    return FileSearcher(store, clock=lambda: NOW)


class TestQueryGuards:
    @pytest.mark.parametrize("query", ["", "   ", "\t"])
    def test_blank_query_returns_nothing(self, searcher, store, make_entry, query):
        store.upsert(make_entry("a.txt"))
        assert searcher.search(query) == []

    def test_non_positive_limit_returns_nothing(self, searcher, store, make_entry):
        store.upsert(make_entry("a.txt"))
        assert searcher.search("a", max_results=0) == []

    def test_no_matches_is_not_an_error(self, searcher, store, make_entry):
        store.upsert(make_entry("alpha.txt"))
        assert searcher.search("qqq") == []


class TestRanking:
    def test_exact_match_outranks_boosted_prefix(self, searcher, store, make_entry):
        store.upsert_batch(
            [
                make_entry("notes", "/d/notes"),
                make_entry("notes_app.exe", "/apps/notes_app.exe", file_type=FileType.APP),
            ]
        )
        for _ in range(20):
            store.record_click("/apps/notes_app.exe", now=int(NOW))

        results = searcher.search("notes")

        assert [result.filename for result in results] == ["notes", "notes_app.exe"]
        assert results[0].match_type is MatchType.EXACT
        assert results[0].score == pytest.approx(1000.0)

    def test_exact_filename_beats_longer_sibling(self, searcher, store, make_entry):
        store.upsert_batch(
            [
                make_entry("report_final.pdf", "/docs/report_final.pdf", file_type=FileType.DOCUMENT),
                make_entry("report.pdf", "/docs/report.pdf", file_type=FileType.DOCUMENT),
            ]
        )

        results = searcher.search("report.pdf")

        assert results[0].filename == "report.pdf"
        assert results[0].match_type is MatchType.EXACT
        assert all(other.score < results[0].score for other in results[1:])

    def test_results_are_sorted_by_descending_score(self, searcher, store, make_entry):
        store.upsert_batch(
            [
                make_entry("my_budget.xlsx", "/d/my_budget.xlsx", file_type=FileType.DOCUMENT),
                make_entry("budget", "/d/budget"),
                make_entry("budget.xlsx", "/d/budget.xlsx", file_type=FileType.DOCUMENT),
                make_entry("summary.txt", "/budget/summary.txt"),
                make_entry("budget_2024.csv", "/d/budget_2024.csv", file_type=FileType.DOCUMENT),
            ]
        )

        results = searcher.search("budget")
        scores = [result.score for result in results]

        assert scores == sorted(scores, reverse=True)
        assert [result.match_type for result in results] == [
            MatchType.EXACT,
            MatchType.EXACT,
            MatchType.PREFIX,
            MatchType.SUBSTRING,
            MatchType.PATH,
        ]

    def test_ties_break_by_ascending_id(self, searcher, store, make_entry):
        store.upsert_batch([make_entry("log_b.txt", "/l/log_b.txt"), make_entry("log_a.txt", "/l/log_a.txt")])

        results = searcher.search("log")

        assert results[0].score == results[1].score
        assert [result.id for result in results] == sorted(result.id for result in results)
        assert results[0].filename == "log_b.txt"

    def test_click_feedback_reorders_future_queries(self, searcher, store, make_entry):
        store.upsert_batch([make_entry("log_b.txt", "/l/log_b.txt"), make_entry("log_a.txt", "/l/log_a.txt")])
        first = searcher.search("log")

        assert searcher.record_click("/l/log_a.txt")
        second = searcher.search("log")

        assert first[0].filename == "log_b.txt"
        assert second[0].filename == "log_a.txt"
        assert second[0].click_count == 1
        # Earlier results are immutable snapshots
        assert first[1].click_count == 0

    def test_record_click_unknown_path(self, searcher):
        assert searcher.record_click("/nowhere") is False


class TestPhases:
    def test_fuzzy_phase_finds_abbreviations(self, searcher, store, make_entry):
        store.upsert(make_entry("report.pdf", "/docs/report.pdf", file_size=1234, file_type=FileType.DOCUMENT))

        results = searcher.search("rpt")

        assert len(results) == 1
        hit = results[0]
        assert hit.match_type is MatchType.FUZZY
        assert hit.matched_indices == [0, 2, 5]
        # The exhaustive pass reads a projection without extension or size
        assert hit.extension == ""
        assert hit.file_size == 0

    def test_entries_are_never_duplicated_across_phases(self, searcher, store, make_entry):
        store.upsert_batch(
            [
                make_entry("report.pdf", "/rpt/report.pdf"),
                make_entry("report.pdf", "/docs/report.pdf"),
            ]
        )

        results = searcher.search("rpt")
        ids = [result.id for result in results]

        assert len(ids) == len(set(ids)) == 2
        assert results[0].filepath == "/rpt/report.pdf"
        assert results[0].match_type is MatchType.PATH
        assert results[1].match_type is MatchType.FUZZY

    def test_fuzzy_phase_skipped_when_prefilter_fills_limit(self, searcher, store, make_entry):
        store.upsert_batch(
            [
                make_entry("cal_a.txt", "/c/cal_a.txt"),
                make_entry("cal_b.txt", "/c/cal_b.txt"),
                make_entry("c_a_l.txt", "/c/c_a_l.txt"),
            ]
        )

        results = searcher.search("cal", max_results=2)

        assert [result.filename for result in results] == ["cal_a.txt", "cal_b.txt"]

    def test_fuzzy_phase_fills_remaining_slots(self, searcher, store, make_entry):
        store.upsert_batch(
            [
                make_entry("cal_a.txt", "/c/cal_a.txt"),
                make_entry("c_a_l.txt", "/c/c_a_l.txt"),
            ]
        )

        results = searcher.search("cal", max_results=5)

        assert [result.match_type for result in results] == [MatchType.PREFIX, MatchType.FUZZY]


class TestResultCap:
    def test_default_cap(self, searcher, store, make_entry):
        store.upsert_batch(make_entry(f"track{i:02d}.mp3", f"/music/track{i:02d}.mp3") for i in range(40))
        assert len(searcher.search("track")) == 15

    def test_explicit_cap(self, searcher, store, make_entry):
        store.upsert_batch(make_entry(f"track{i:02d}.mp3", f"/music/track{i:02d}.mp3") for i in range(40))
        assert len(searcher.search("track", max_results=5)) == 5

    def test_configured_cap(self, store, make_entry):
        store.upsert_batch(make_entry(f"track{i:02d}.mp3", f"/music/track{i:02d}.mp3") for i in range(40))
        searcher = FileSearcher(store, max_results=3, clock=lambda: NOW)
        assert len(searcher.search("track")) == 3


def test_storage_failure_propagates(tmp_path):
    closed = FileIndexStore(tmp_path / "closed.db")
    closed.close()
    with pytest.raises(StorageError):
        FileSearcher(closed).search("anything")
