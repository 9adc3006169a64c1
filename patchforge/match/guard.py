# patchforge/match/guard.py
from __future__ import annotations

import re
import time
from typing import Callable, Optional

from ..config import DEFAULT_CONFIG, MatchConfig
from ..errors import MalformedBlockError

__all__ = ["PerformanceGuard", "BudgetExceeded", "check_regex_safety"]


class BudgetExceeded(Exception):
    """Internal signal: the guard's budget ran out. Never escapes locate()."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


# Estimated distance work (characters x 64-bit words) between forced clock reads.
CLOCK_COST = 250_000


class PerformanceGuard:
    """
    Bounds the work done by one locate() call.

    Three budgets: fuzzy windows scored (capped by file size and config),
    characters pushed through the distance computation, and wall-clock time.
    The clock is read every `check_interval` ticks, and sooner once the
    estimated distance work since the last read reaches CLOCK_COST.
    """

    def __init__(
        self,
        config: MatchConfig = DEFAULT_CONFIG,
        *,
        line_count: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.max_windows = max(1, min(config.max_windows, line_count + 1))
        self.max_operations = config.max_operations
        self._clock = clock
        self._deadline: Optional[float] = (
            clock() + config.time_budget if config.time_budget is not None else None
        )
        self.windows = 0
        self.operations = 0
        self._ticks = 0
        self._since_clock = 0
        self.exhausted: Optional[str] = None

    def _trip(self, reason: str) -> None:
        self.exhausted = reason
        raise BudgetExceeded(reason)

    def _tick(self, cost: int = 0) -> None:
        self._ticks += 1
        self._since_clock += cost
        if self._ticks % self.config.check_interval == 0 or self._since_clock >= CLOCK_COST:
            self.check()

    def window(self, chars: int, cost: Optional[int] = None) -> None:
        """
        Account for one fuzzy window of `chars` characters about to be scored.

        `cost` estimates the distance work for the window (defaults to `chars`);
        expensive windows force a clock read regardless of the tick cadence.
        """
        if self.windows >= self.max_windows:
            self._trip(f"window cap of {self.max_windows} reached")
        if self.operations + chars > self.max_operations:
            self._trip(f"operation budget of {self.max_operations} exceeded")
        self.windows += 1
        self.operations += chars
        self._tick(chars if cost is None else cost)

    def regex_match(self, count: int) -> None:
        """Account for the `count`-th regex match."""
        if count > self.config.max_regex_matches:
            self._trip(f"more than {self.config.max_regex_matches} regex matches")
        self._tick()

    def check(self) -> None:
        """Read the clock now and trip if the deadline has passed."""
        self._since_clock = 0
        if self._deadline is not None and self._clock() >= self._deadline:
            self._trip(f"time budget of {self.config.time_budget:g}s exceeded")


_UNBOUNDED_QUANT_RE = re.compile(r"[*+]|\{\d*,\}")


def _is_unbounded_quantifier(pattern: str, pos: int) -> bool:
    return bool(_UNBOUNDED_QUANT_RE.match(pattern, pos))


def check_regex_safety(pattern: str) -> None:
    """
    Reject patterns prone to catastrophic backtracking before they reach `re`.

    Flags a group that contains an unbounded quantifier and is itself followed
    by one, e.g. '(a+)+', '(.*)*', '(?:\\w+\\s?){2,}', a repeated alternation
    such as '(a|aa)*c', and a repeated back-reference such as '(a|aa)\\1*'.
    The stdlib engine has no timeout, so refusing these up front is what
    keeps a regex search bounded.

    Raises:
        MalformedBlockError
    """
    # One frame per open group: [unbounded quantifier inside, top-level '|'].
    stack: list[list[bool]] = []
    i, n = 0, len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\":
            if i + 1 < n and pattern[i + 1].isdigit() and _is_unbounded_quantifier(pattern, i + 2):
                raise MalformedBlockError(
                    f"regex {pattern!r} repeats a back-reference; refusing a backtracking-prone pattern"
                )
            i += 2
            continue
        if ch == "[":
            # Skip the class; ']' right after '[' or '[^' is literal.
            j = i + 1
            if j < n and pattern[j] == "^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 2 if pattern[j] == "\\" else 1
            i = j + 1
            continue
        if ch == "(":
            stack.append([False, False])
        elif ch == ")":
            unbounded, alt = stack.pop() if stack else (False, False)
            if _is_unbounded_quantifier(pattern, i + 1):
                if unbounded:
                    raise MalformedBlockError(
                        f"regex {pattern!r} nests unbounded quantifiers; refusing a backtracking-prone pattern"
                    )
                if alt:
                    raise MalformedBlockError(
                        f"regex {pattern!r} repeats an alternation; refusing a backtracking-prone pattern"
                    )
            if stack:
                stack[-1][0] |= unbounded
                stack[-1][1] |= alt
        elif ch == "|" and stack:
            stack[-1][1] = True
        elif stack and _is_unbounded_quantifier(pattern, i):
            stack[-1][0] = True
        i += 1
