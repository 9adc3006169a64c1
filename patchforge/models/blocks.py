from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class SearchReplaceBlock:
    """One SEARCH/REPLACE unit parsed from a patch."""

    search: str
    replace: str
    start_line_hint: Optional[int] = None
    end_line_hint: Optional[int] = None
    use_regex: bool = False
    ignore_case: bool = False

    def with_hint(self, start_line: Optional[int]) -> "SearchReplaceBlock":
        """Return a copy carrying `start_line` as its hint unless it already has one."""
        if start_line is None or self.start_line_hint is not None:
            return self
        return replace(self, start_line_hint=start_line)


@dataclass(frozen=True)
class MatchCandidate:
    """A scored location in content. Lines are 1-based inclusive; start/end are char offsets."""

    start_line: int
    end_line: int
    score: float
    start: int
    end: int

    def overlaps(self, other: "MatchCandidate") -> bool:
        return self.start_line <= other.end_line and other.start_line <= self.end_line


@dataclass(frozen=True)
class LineRange:
    """A caller-supplied hard scope: 1-based, inclusive on both ends."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1:
            raise ValueError(f"start line must be >= 1, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"end line {self.end} is before start line {self.start}")

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end
