# patchforge/commit/apply.py
from __future__ import annotations

import logging

from ..models.blocks import MatchCandidate, SearchReplaceBlock

__all__ = ["apply_replacement"]


log = logging.getLogger(__name__)


def apply_replacement(content: str, candidate: MatchCandidate, block: SearchReplaceBlock) -> str:
    """
    Splice `block.replace` over content[candidate.start:candidate.end].

    Everything outside the span is kept byte-for-byte. The replacement is
    inserted as written: no re-indentation, and for regex blocks no group
    expansion.
    """
    if not 0 <= candidate.start <= candidate.end <= len(content):
        raise ValueError(
            f"candidate span [{candidate.start}, {candidate.end}) is outside content of length {len(content)}"
        )
    log.debug(
        "Replacing lines %d-%d (chars %d-%d, score %.3f)",
        candidate.start_line,
        candidate.end_line,
        candidate.start,
        candidate.end,
        candidate.score,
    )
    return content[: candidate.start] + block.replace + content[candidate.end :]
