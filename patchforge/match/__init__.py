from .guard import PerformanceGuard, check_regex_safety
from .locate import LocateResult, MatchStrategy, locate, strategy_for
from .policy import NO_MATCH_REASON, resolve
from .similarity import SearchPattern, bounded_distance, levenshtein, similarity

__all__ = [
    "locate",
    "LocateResult",
    "MatchStrategy",
    "strategy_for",
    "resolve",
    "NO_MATCH_REASON",
    "PerformanceGuard",
    "check_regex_safety",
    "SearchPattern",
    "bounded_distance",
    "levenshtein",
    "similarity",
]
