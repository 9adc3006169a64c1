# patchforge/config.py
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

__all__ = ["MatchConfig", "DEFAULT_CONFIG"]


@dataclass(frozen=True)
class MatchConfig:
    """
    Tunables for matching. The defaults are empirical; callers pass their own
    instance rather than mutating anything global.

    threshold:            minimum similarity for a fuzzy window to be a candidate.
    buffer_lines:         lines searched on each side of a start-line hint before
                          the scan widens to the rest of the file.
    max_windows:          hard cap on fuzzy windows scored per locate call.
    max_operations:       characters fed through the distance computation per call.
    time_budget:          wall-clock seconds per locate call (None disables).
    check_interval:       windows (or regex matches) between budget checks.
    max_regex_matches:    stop enumerating regex matches past this count.
    max_sample_locations: line numbers reported on an Ambiguous outcome.
    """

    threshold: float = 0.8
    buffer_lines: int = 40
    max_windows: int = 20_000
    max_operations: int = 20_000_000
    time_budget: float | None = 5.0
    check_interval: int = 64
    max_regex_matches: int = 10_000
    max_sample_locations: int = 10

    def __post_init__(self) -> None:
        if not 0.0 < self.threshold <= 1.0:
            raise ValueError(f"threshold must be in (0, 1], got {self.threshold!r}")
        for name in ("buffer_lines",):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        for name in ("max_windows", "max_operations", "check_interval", "max_regex_matches", "max_sample_locations"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.time_budget is not None and self.time_budget <= 0:
            raise ValueError("time_budget must be positive or None")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "MatchConfig":
        """Build a config from loose keys (e.g. parsed JSON); unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown MatchConfig option(s): {', '.join(unknown)}")
        return cls(**dict(values))

    def with_overrides(self, **overrides: Any) -> "MatchConfig":
        return replace(self, **overrides)


DEFAULT_CONFIG = MatchConfig()
