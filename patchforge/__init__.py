from .batch import FilePatch, PatchUnit, apply_multi_file, apply_multi_file_from_disk
from .commit import apply_replacement
from .config import DEFAULT_CONFIG, MatchConfig
from .core import apply_blocks, apply_diff, search_and_replace
from .errors import MalformedBlockError, PatchforgeError, PathViolation
from .extract import parse_blocks
from .match import LocateResult, MatchStrategy, PerformanceGuard, locate, resolve, similarity
from .models import (
    Ambiguous,
    Applied,
    ApplyOutcome,
    BatchResult,
    FailPart,
    LineRange,
    MalformedBlock,
    MatchCandidate,
    NoMatch,
    SearchReplaceBlock,
)

__all__ = [
    "apply_diff",
    "apply_blocks",
    "search_and_replace",
    "apply_multi_file",
    "apply_multi_file_from_disk",
    "FilePatch",
    "PatchUnit",
    "parse_blocks",
    "locate",
    "resolve",
    "apply_replacement",
    "similarity",
    "LocateResult",
    "MatchStrategy",
    "PerformanceGuard",
    "MatchConfig",
    "DEFAULT_CONFIG",
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
    "PatchforgeError",
    "MalformedBlockError",
    "PathViolation",
]
