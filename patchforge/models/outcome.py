from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class Applied:
    """The block matched exactly one location and the edit was folded in."""

    content: str
    success = True

    @property
    def message(self) -> str:
        return "Applied"


@dataclass(frozen=True)
class NoMatch:
    """
    Nothing in the content was similar enough to the search text.

    `aborted` marks a search the performance guard cut short: the answer is
    "not found within budget", not "not present".
    """

    reason: str
    best_score: Optional[float] = None
    best_line: Optional[int] = None
    aborted: bool = False
    success = False

    @property
    def message(self) -> str:
        return self.reason


@dataclass(frozen=True)
class Ambiguous:
    """Two or more locations tied at the top score; the engine refuses to pick one."""

    count: int
    sample_locations: Tuple[int, ...]
    scoped: bool = False
    message: str = ""
    success = False


@dataclass(frozen=True)
class MalformedBlock:
    """The patch scaffolding (or a regex search) is unusable as written."""

    reason: str
    success = False

    @property
    def message(self) -> str:
        return self.reason


ApplyOutcome = Union[Applied, NoMatch, Ambiguous, MalformedBlock]


@dataclass(frozen=True)
class FailPart:
    """A per-block failure recorded alongside whatever else in the batch succeeded."""

    block_index: int
    outcome: ApplyOutcome

    @property
    def message(self) -> str:
        return f"Block {self.block_index + 1}: {self.outcome.message}"


@dataclass
class BatchResult:
    """Outcome of applying one patch (or several patch units) to one file."""

    success: bool
    content: Optional[str] = None
    fail_parts: List[FailPart] = field(default_factory=list)
    applied: List[int] = field(default_factory=list)
    # File-level failure (unreadable file, path violation) in multi-file mode.
    error: Optional[str] = None

    @property
    def messages(self) -> List[str]:
        out = [self.error] if self.error else []
        out.extend(fp.message for fp in self.fail_parts)
        return out
