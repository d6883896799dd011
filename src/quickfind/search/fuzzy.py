"""Fuzzy subsequence matching for typo- and abbreviation-tolerant search.

This module scores how well a query matches a filename when the query is
not a contiguous substring, e.g. ``"vsc"`` against ``"Visual Studio Code"``.
Every query character must appear in the text in order. Among all such
alignments the highest-scoring one is chosen with a Smith-Waterman style
dynamic program.

Scoring (fzf-style constants):
- Every matched character earns a base score
- Matches on word boundaries, camelCase humps and digits earn a bonus
- Runs of consecutive matches earn a bonus
- Gaps between matches are penalized (start + per-character extension)
- The first query character's bonus is doubled
"""

from __future__ import annotations

from dataclasses import dataclass


SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1

BONUS_BOUNDARY = SCORE_MATCH // 2
BONUS_NON_WORD = SCORE_MATCH // 2
BONUS_CAMEL123 = BONUS_BOUNDARY + SCORE_GAP_EXTENSION
BONUS_CONSECUTIVE = -(SCORE_GAP_START + SCORE_GAP_EXTENSION)
BONUS_FIRST_CHAR_MULTIPLIER = 2

_CHAR_NON_WORD = 0
_CHAR_LOWER = 1
_CHAR_UPPER = 2
_CHAR_NUMBER = 3


@dataclass(frozen=True, slots=True)
class FuzzyMatch:
    """Best alignment of a pattern inside a text."""

    score: int
    indices: tuple[int, ...]


def _char_class(ch: str) -> int:
    if ch.isdecimal():
        return _CHAR_NUMBER
    if ch.isupper():
        return _CHAR_UPPER
    if ch.isalpha():
        return _CHAR_LOWER
    return _CHAR_NON_WORD


def _position_bonus(prev_class: int, cur_class: int) -> int:
    if prev_class == _CHAR_NON_WORD and cur_class != _CHAR_NON_WORD:
        return BONUS_BOUNDARY
    if (prev_class == _CHAR_LOWER and cur_class == _CHAR_UPPER) or (
        prev_class != _CHAR_NUMBER and cur_class == _CHAR_NUMBER
    ):
        return BONUS_CAMEL123
    if cur_class == _CHAR_NON_WORD:
        return BONUS_NON_WORD
    return 0


def compute_bonuses(text: str) -> list[int]:
    """Return the positional bonus for every character of ``text``.

    Examples:
        >>> compute_bonuses("a_b")
        [8, 8, 8]
        >>> compute_bonuses("fooBar")
        [8, 0, 0, 7, 0, 0]
    """
    bonuses: list[int] = []
    prev_class = _CHAR_NON_WORD
    for ch in text:
        cur_class = _char_class(ch)
        bonuses.append(_position_bonus(prev_class, cur_class))
        prev_class = cur_class
    return bonuses


def is_subsequence(folded_text: list[str], folded_pattern: list[str]) -> bool:
    """Check in O(n) whether every pattern character appears in order."""
    position = 0
    for ch in folded_text:
        if position < len(folded_pattern) and ch == folded_pattern[position]:
            position += 1
    return position == len(folded_pattern)


def fuzzy_match(text: str, pattern: str) -> FuzzyMatch | None:
    """Find the best case-insensitive subsequence alignment of ``pattern`` in ``text``.

    Args:
        text: Candidate string (filename or path).
        pattern: Query to align; characters must appear in order.

    Returns:
        ``FuzzyMatch`` with the alignment score and the matched character
        offsets into ``text``, or ``None`` when ``pattern`` is not a
        subsequence of ``text``. An empty pattern matches with score 0.

    Examples:
        >>> fuzzy_match("report.pdf", "rpt").indices
        (0, 2, 5)
        >>> fuzzy_match("report.pdf", "xyz") is None
        True
    """
    if not pattern:
        return FuzzyMatch(score=0, indices=())

    # Fold per character so offsets stay aligned with the original text
    folded_text = [ch.lower() for ch in text]
    folded_pattern = [ch.lower() for ch in pattern]
    if len(folded_pattern) > len(folded_text) or not is_subsequence(folded_text, folded_pattern):
        return None

    n = len(folded_text)
    bonuses = compute_bonuses(text)

    prev_scores: list[int | None] = [None] * n
    backpointers: list[list[int]] = []

    for i, pattern_char in enumerate(folded_pattern):
        scores: list[int | None] = [None] * n
        pointers = [-1] * n
        gap_best: int | None = None
        gap_from = -1

        for j in range(n):
            if i > 0:
                if gap_best is not None:
                    gap_best += SCORE_GAP_EXTENSION
                if j >= 2 and prev_scores[j - 2] is not None:
                    candidate = prev_scores[j - 2] + SCORE_GAP_START
                    if gap_best is None or candidate > gap_best:
                        gap_best, gap_from = candidate, j - 2

            if folded_text[j] != pattern_char:
                continue

            bonus = bonuses[j]
            if i == 0:
                scores[j] = SCORE_MATCH + bonus * BONUS_FIRST_CHAR_MULTIPLIER
                continue

            best: int | None = None
            if j >= 1 and prev_scores[j - 1] is not None:
                best = prev_scores[j - 1] + SCORE_MATCH + max(bonus, BONUS_CONSECUTIVE)
                pointers[j] = j - 1
            if gap_best is not None:
                candidate = gap_best + SCORE_MATCH + bonus
                if best is None or candidate > best:
                    best = candidate
                    pointers[j] = gap_from
            scores[j] = best

        backpointers.append(pointers)
        prev_scores = scores

    best_end = -1
    best_score: int | None = None
    for j, score in enumerate(prev_scores):
        if score is not None and (best_score is None or score > best_score):
            best_end, best_score = j, score
    if best_score is None:
        return None

    indices = [0] * len(folded_pattern)
    position = best_end
    for i in range(len(folded_pattern) - 1, -1, -1):
        indices[i] = position
        position = backpointers[i][position]

    return FuzzyMatch(score=best_score, indices=tuple(indices))
