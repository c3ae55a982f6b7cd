"""Edit-distance similarity used to match catalog names against page text.

Scoring every candidate costs O(len(a) * len(b)); the locator keeps this
bounded by only scoring elements whose text falls inside a length window.
"""

from __future__ import annotations

from typing import List

from .utils import normalize_text

PARTIAL_MATCH_BONUS = 0.2


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit insert, delete and substitute costs."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous: List[int] = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current[j] = min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            )
        previous = current
    return previous[len(b)]


def similarity(a: str, b: str) -> float:
    """Return ``(longest - distance) / longest``; two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - edit_distance(a, b)) / longest


def match_score(target: str, candidate_text: str) -> float:
    """Score page text against a product name.

    The normalized similarity gets ``PARTIAL_MATCH_BONUS`` added when the
    candidate contains the first word of the target, which favours
    container text that mentions the product among other words. The result
    is not clamped and may exceed 1.0; callers that store it clamp it.
    """
    normalized_target = normalize_text(target)
    normalized_text = normalize_text(candidate_text)
    score = similarity(normalized_target, normalized_text)
    tokens = normalized_target.split(" ")
    if tokens[0] and tokens[0] in normalized_text:
        score += PARTIAL_MATCH_BONUS
    return score


def clamp_score(score: float) -> float:
    return max(0.0, min(score, 1.0))
