from .blocks import LineRange, MatchCandidate, SearchReplaceBlock
from .outcome import (
    Ambiguous,
    Applied,
    ApplyOutcome,
    BatchResult,
    FailPart,
    MalformedBlock,
    NoMatch,
)

__all__ = [
    "SearchReplaceBlock",
    "MatchCandidate",
    "LineRange",
    "Applied",
    "NoMatch",
    "Ambiguous",
    "MalformedBlock",
    "ApplyOutcome",
    "FailPart",
    "BatchResult",
]
