"""Composite relevance scoring for search candidates.

A candidate's score is a match-kind base score plus additive boosts for
file type, usage frequency and recency of use.
"""

from __future__ import annotations

from dataclasses import dataclass
import math

from quickfind.search.fuzzy import fuzzy_match
from quickfind.search.models import FileType, IndexedEntry, MatchType


EXACT_SCORE = 1000.0
EXACT_STEM_SCORE = 950.0
PREFIX_SCORE = 800.0
SUBSTRING_SCORE = 600.0
PATH_SCORE = 300.0
FUZZY_FILENAME_FLOOR = 10.0
FUZZY_PATH_FLOOR = 5.0
FUZZY_PATH_WEIGHT = 0.5
EXHAUSTIVE_FUZZY_WEIGHT = 0.5

USAGE_WEIGHT = 15.0
RECENCY_NUMERATOR = 100.0
RECENCY_CAP = 30.0

FILE_TYPE_BOOSTS: dict[FileType, float] = {
    FileType.APP: 50.0,
    FileType.SHORTCUT: 40.0,
    FileType.DOCUMENT: 20.0,
    FileType.FOLDER: 15.0,
    FileType.CODE: 10.0,
    FileType.IMAGE: 5.0,
}


@dataclass(frozen=True, slots=True)
class ScoredMatch:
    """Score and match metadata for one candidate."""

    score: float
    match_type: MatchType
    matched_indices: tuple[int, ...] = ()


def file_type_boost(file_type: FileType | str) -> float:
    return FILE_TYPE_BOOSTS.get(FileType.parse(file_type), 0.0)


def usage_boost(click_count: int) -> float:
    """Logarithmic click boost so heavy use cannot dominate the match score."""
    if click_count <= 0:
        return 0.0
    return math.log(click_count) * USAGE_WEIGHT


def recency_boost(last_accessed: int, now: float) -> float:
    """Decaying boost for recently launched entries, capped at ``RECENCY_CAP``."""
    if last_accessed <= 0:
        return 0.0
    age_hours = max((now - last_accessed) / 3600.0, 1.0)
    return min(RECENCY_NUMERATOR / age_hours, RECENCY_CAP)


def relevance_boost(file_type: FileType | str, click_count: int, last_accessed: int, now: float) -> float:
    """Sum of type, usage and recency boosts."""
    return file_type_boost(file_type) + usage_boost(click_count) + recency_boost(last_accessed, now)


def _stem(filename_lower: str) -> str:
    # Everything before the first dot: "archive.tar.gz" -> "archive"
    return filename_lower.split(".", 1)[0]


def match_filename(filename: str, filepath: str, query_lower: str) -> ScoredMatch:
    """Base score for the first applicable match kind, without boosts."""
    filename_lower = filename.lower()
    query_length = len(query_lower)

    if filename_lower == query_lower:
        return ScoredMatch(EXACT_SCORE, MatchType.EXACT, tuple(range(len(filename))))
    if _stem(filename_lower) == query_lower:
        return ScoredMatch(EXACT_STEM_SCORE, MatchType.EXACT, tuple(range(query_length)))
    if filename_lower.startswith(query_lower):
        return ScoredMatch(PREFIX_SCORE, MatchType.PREFIX, tuple(range(query_length)))

    position = filename_lower.find(query_lower)
    if position >= 0:
        return ScoredMatch(SUBSTRING_SCORE, MatchType.SUBSTRING, tuple(range(position, position + query_length)))
    if query_lower in filepath.lower():
        return ScoredMatch(PATH_SCORE, MatchType.PATH)

    fuzzy = fuzzy_match(filename, query_lower)
    if fuzzy is not None:
        return ScoredMatch(max(float(fuzzy.score), FUZZY_FILENAME_FLOOR), MatchType.FUZZY, fuzzy.indices)

    fuzzy = fuzzy_match(filepath, query_lower)
    if fuzzy is not None:
        return ScoredMatch(
            max(fuzzy.score * FUZZY_PATH_WEIGHT, FUZZY_PATH_FLOOR),
            MatchType.PATH,
            fuzzy.indices,
        )

    return ScoredMatch(0.0, MatchType.NONE)


def score_entry(entry: IndexedEntry, query_lower: str, now: float) -> ScoredMatch:
    """Composite score for a candidate returned by the SQL prefilter."""
    base = match_filename(entry.filename, entry.filepath, query_lower)
    boost = relevance_boost(entry.file_type, entry.click_count, entry.last_accessed, now)
    return ScoredMatch(base.score + boost, base.match_type, base.matched_indices)


def score_exhaustive_fuzzy(
    raw_fuzzy_score: int,
    file_type: FileType | str,
    click_count: int,
    last_accessed: int,
    now: float,
) -> float:
    """Score for the exhaustive fuzzy pass: half-weight fuzzy score, no floor, no tier."""
    return raw_fuzzy_score * EXHAUSTIVE_FUZZY_WEIGHT + relevance_boost(file_type, click_count, last_accessed, now)
