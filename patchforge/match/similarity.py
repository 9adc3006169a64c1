# patchforge/match/similarity.py
"""
Edit-distance similarity for fuzzy matching.

    similarity(a, b) = 1 - levenshtein(a, b) / max(len(a), len(b))

Scoring one window must not cost a full quadratic matrix. `SearchPattern`
prepares the search text once (per-character bit masks for the bit-parallel
algorithm of Myers, in Hyyro's formulation for global distance), then each
window is a single pass over its characters with Python ints as bit vectors.
Two lower bounds (length difference and shared character multiset) reject
hopeless windows before that pass, and the pass itself stops as soon as the
characters left cannot bring the distance back under the bound.
"""
from __future__ import annotations

import math
from collections import Counter
from typing import Optional

__all__ = ["SearchPattern", "bounded_distance", "levenshtein", "similarity", "max_distance_for"]


def max_distance_for(threshold: float, longest: int) -> int:
    """Largest distance that still scores >= threshold against a span of `longest` chars."""
    # Epsilon keeps e.g. (1 - 0.8) * 10 == 1.9999999999999996 from rounding down.
    return max(0, math.floor((1.0 - threshold) * longest + 1e-9))


class SearchPattern:
    """A search text preprocessed for repeated bounded distance queries."""

    __slots__ = ("text", "length", "_peq", "_full", "_high", "_counts")

    def __init__(self, text: str):
        self.text = text
        self.length = len(text)
        peq: dict[str, int] = {}
        for i, ch in enumerate(text):
            peq[ch] = peq.get(ch, 0) | (1 << i)
        self._peq = peq
        self._full = (1 << self.length) - 1
        self._high = 1 << (self.length - 1) if self.length else 0
        self._counts = Counter(text)

    def distance(self, other: str, max_distance: Optional[int] = None) -> int:
        """
        Levenshtein distance to `other`, or `max_distance + 1` as soon as the
        true distance is known to exceed `max_distance`.
        """
        m, n = self.length, len(other)
        if max_distance is None:
            max_distance = max(m, n)
        over = max_distance + 1
        if abs(m - n) > max_distance:
            return over
        if m == 0:
            return n
        if n == 0:
            return m

        # Every char not shared between the two multisets costs at least one edit.
        shared = sum((self._counts & Counter(other)).values())
        if max(m, n) - shared > max_distance:
            return over

        peq = self._peq
        full = self._full
        high = self._high
        pv = full
        mv = 0
        score = m
        remaining = n
        for ch in other:
            eq = peq.get(ch, 0)
            xv = eq | mv
            xh = ((((eq & pv) + pv) ^ pv) | eq) & full
            ph = mv | (~(xh | pv) & full)
            mh = pv & xh
            if ph & high:
                score += 1
            elif mh & high:
                score -= 1
            remaining -= 1
            # Each remaining column can lower the last row by at most one.
            if score - remaining > max_distance:
                return over
            ph = ((ph << 1) | 1) & full
            mh = (mh << 1) & full
            pv = mh | (~(xv | ph) & full)
            mv = ph & xv
        return score if score <= max_distance else over

    def similarity(self, other: str, floor: float = 0.0) -> Optional[float]:
        """
        Similarity to `other` in [0, 1], or None when it is known to be below `floor`.
        With floor=0.0 the exact value is always returned.
        """
        longest = max(self.length, len(other))
        if longest == 0:
            return 1.0
        limit = max_distance_for(floor, longest) if floor > 0.0 else longest
        d = self.distance(other, limit)
        if d > limit:
            return None
        return min(1.0, max(0.0, 1.0 - d / longest))

    def upper_bound(self, other: str) -> float:
        """Cheap ceiling on similarity(other), from the shared character multiset."""
        longest = max(self.length, len(other))
        if longest == 0:
            return 1.0
        shared = sum((self._counts & Counter(other)).values())
        return shared / longest


def bounded_distance(a: str, b: str, max_distance: int) -> int:
    """Levenshtein distance between a and b, capped at max_distance + 1."""
    return SearchPattern(a).distance(b, max_distance)


def levenshtein(a: str, b: str) -> int:
    return SearchPattern(a).distance(b)


def similarity(a: str, b: str) -> float:
    """Normalized edit similarity, 1.0 for identical text (including two empty strings)."""
    score = SearchPattern(a).similarity(b)
    return 1.0 if score is None else score
