"""Title similarity scoring for catalog search results.

Blends a word-set (Jaccard) overlap with a normalized Levenshtein score,
short-circuiting on exact and substring matches. The result is always in
[0, 1] and deterministic.
"""

import re

from loguru import logger
from rapidfuzz.distance import Levenshtein

log = logger.bind(stage="search")

EXACT_SCORE = 1.0
CONTAINS_SCORE = 0.9
WORD_WEIGHT = 0.6
EDIT_WEIGHT = 0.4

_WHITESPACE = re.compile(r"\s+")


def _normalize(s: str) -> str:
    return s.strip().lower()


def levenshtein_distance(a: str, b: str) -> int:
    """Classic unit-cost edit distance (insert, delete, substitute)."""
    return Levenshtein.distance(a, b)


def word_set_score(a: str, b: str) -> float:
    """Jaccard overlap of whitespace-separated tokens. Empty union -> 0."""
    words_a = set(_WHITESPACE.split(a)) - {""}
    words_b = set(_WHITESPACE.split(b)) - {""}
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def edit_distance_score(a: str, b: str) -> float:
    """1 - distance / longest length. Two empty strings count as identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def score(query: str, candidate: str) -> float:
    """Score how well candidate matches query, in [0, 1].

    Exact match (after trim + lower-case) scores 1.0, one string containing
    the other scores 0.9. Everything else is 0.6 * word-set score +
    0.4 * edit-distance score.
    """
    a = _normalize(query)
    b = _normalize(candidate)

    if a == b:
        return EXACT_SCORE
    if a and b and (a in b or b in a):
        return CONTAINS_SCORE

    return WORD_WEIGHT * word_set_score(a, b) + EDIT_WEIGHT * edit_distance_score(a, b)


def pick_best(query: str, candidates: list[str]) -> tuple[int, float] | None:
    """Return (index, score) of the highest-scoring candidate title.

    Ties keep the earliest candidate (provider relevance order).
    Returns None for an empty candidate list.
    """
    best: tuple[int, float] | None = None
    for idx, title in enumerate(candidates):
        s = score(query, title)
        log.debug(f"  {title!r} -> {s:.3f}")
        if best is None or s > best[1]:
            best = (idx, s)

    if best is not None:
        log.debug(f"Best match for {query!r}: {candidates[best[0]]!r} score={best[1]:.3f}")
    return best
