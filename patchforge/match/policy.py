# patchforge/match/policy.py
from __future__ import annotations

from typing import Optional, Sequence, Union

from ..config import DEFAULT_CONFIG, MatchConfig
from ..models.blocks import MatchCandidate
from ..models.outcome import Ambiguous, NoMatch
from .locate import LocateResult

__all__ = ["resolve", "NO_MATCH_REASON"]


NO_MATCH_REASON = "No sufficiently similar match found"


def _no_match(result: Optional[LocateResult], config: MatchConfig) -> NoMatch:
    if result is None:
        return NoMatch(reason=f"{NO_MATCH_REASON}.")
    where = " in the specified line range" if result.scoped else ""
    if result.note:
        return NoMatch(reason=f"{NO_MATCH_REASON}{where}: {result.note}.")
    if result.aborted:
        return NoMatch(
            reason=(
                f"{NO_MATCH_REASON}{where}: search aborted ({result.aborted}) after "
                f"{result.windows} window(s); the file is too large to check exhaustively. "
                "Add a start_line hint or a line range to narrow the search."
            ),
            best_score=result.best_score,
            best_line=result.best_line,
            aborted=True,
        )
    if result.best_score is not None:
        detail = (
            f" (best similarity {result.best_score:.0%} at line {result.best_line}, "
            f"needs {config.threshold:.0%})"
        )
    else:
        detail = f" (needs {config.threshold:.0%} similarity)"
    return NoMatch(
        reason=(
            f"{NO_MATCH_REASON}{where}{detail}. Re-read the current file content "
            "and make the search text match it."
        ),
        best_score=result.best_score,
        best_line=result.best_line,
    )


def _ambiguous(tied: Sequence[MatchCandidate], scoped: bool, config: MatchConfig) -> Ambiguous:
    count = len(tied)
    lines = sorted(c.start_line for c in tied)
    sample = tuple(lines[: config.max_sample_locations])
    where = "in the specified line range" if scoped else "in the file"
    listing = ", ".join(f"line {n}" for n in sample)
    more = count - len(sample)
    if more > 0:
        listing += f", ... and {more} more matches"
    if scoped:
        remedy = "Narrow the line range so it covers only the intended location, or make the search text more specific."
    else:
        remedy = "Make the search text more specific (include surrounding lines), or pass start_line/end_line to restrict the search."
    message = (
        f"Search query matches {count} locations {where} ({listing}). "
        f"This could lead to unintended replacements. {remedy}"
    )
    return Ambiguous(count=count, sample_locations=sample, scoped=scoped, message=message)


def resolve(
    candidates: Sequence[MatchCandidate],
    *,
    scoped: bool = False,
    locate_result: Optional[LocateResult] = None,
    config: Optional[MatchConfig] = None,
) -> Union[MatchCandidate, NoMatch, Ambiguous]:
    """
    Gate a candidate list: one clear winner is returned, otherwise an outcome
    explaining why nothing will be replaced. Never picks among ties.
    """
    config = config or DEFAULT_CONFIG
    if locate_result is not None:
        scoped = scoped or locate_result.scoped
    if not candidates:
        return _no_match(locate_result, config)
    top = max(c.score for c in candidates)
    tied = [c for c in candidates if c.score == top]
    if len(tied) == 1:
        return tied[0]
    return _ambiguous(tied, scoped, config)
