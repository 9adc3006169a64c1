# patchforge/match/locate.py
from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .._logging import resolve_logger
from ..config import DEFAULT_CONFIG, MatchConfig
from ..errors import MalformedBlockError
from ..models.blocks import LineRange, MatchCandidate, SearchReplaceBlock
from ..utils.text import (
    convert_eol,
    line_of_offset,
    line_span,
    line_start_offsets,
    normalize_lines,
    normalize_quotes,
)
from .guard import BudgetExceeded, PerformanceGuard, check_regex_safety
from .similarity import SearchPattern

__all__ = ["MatchStrategy", "LocateResult", "locate", "strategy_for"]


# Fuzzy scores stay strictly below 1.0, which is reserved for exact matches.
FUZZY_CEILING = 0.9999

# A near miss scoring at least this much is reported in the no-match diagnostic.
DIAGNOSTIC_FLOOR = 0.5


class MatchStrategy(enum.Enum):
    EXACT = "exact"
    CASE_INSENSITIVE = "case_insensitive"
    REGEX = "regex"
    FUZZY = "fuzzy"


def strategy_for(block: SearchReplaceBlock) -> MatchStrategy:
    """The first-pass strategy for a block; FUZZY is only ever a fallback."""
    if block.use_regex:
        return MatchStrategy.REGEX
    if block.ignore_case:
        return MatchStrategy.CASE_INSENSITIVE
    return MatchStrategy.EXACT


@dataclass
class LocateResult:
    """Candidates for one block plus what the search saw along the way."""

    candidates: List[MatchCandidate] = field(default_factory=list)
    strategy: MatchStrategy = MatchStrategy.EXACT
    scoped: bool = False
    best_score: Optional[float] = None
    best_line: Optional[int] = None
    aborted: Optional[str] = None
    windows: int = 0
    note: Optional[str] = None


# ---------- search region ----------

@dataclass(frozen=True)
class _Region:
    first_line: int   # 1-based inclusive
    last_line: int    # 1-based inclusive
    start: int        # char offsets [start, end)
    end: int


def _region_for(content: str, starts: Sequence[int], scope: Optional[LineRange]) -> Optional[_Region]:
    line_count = len(starts)
    if scope is None:
        return _Region(1, line_count, 0, len(content))
    if scope.start > line_count:
        return None
    last = min(scope.end, line_count)
    end = starts[last] if last < line_count else len(content)
    return _Region(scope.start, last, starts[scope.start - 1], end)


def _hint_window(block: SearchReplaceBlock, height: int, buffer: int) -> Optional[Tuple[int, int]]:
    """Line range [lo, hi] the start-line hint points at, padded by the buffer."""
    hint = block.start_line_hint
    if hint is None:
        return None
    last = block.end_line_hint if block.end_line_hint is not None else hint + max(height, 1) - 1
    return max(1, hint - buffer), last + buffer


def _hint_distance(block: SearchReplaceBlock, line: int) -> int:
    return abs(line - block.start_line_hint) if block.start_line_hint is not None else 0


# ---------- exact / case-insensitive / regex passes ----------

def _spans_exact(content: str, needle: str, region: _Region) -> Iterator[Tuple[int, int]]:
    pos = region.start
    while True:
        idx = content.find(needle, pos, region.end)
        if idx == -1:
            return
        yield idx, idx + len(needle)
        pos = idx + len(needle)


def _spans_pattern(
    content: str, pattern: "re.Pattern[str]", region: _Region, guard: PerformanceGuard
) -> Iterator[Tuple[int, int]]:
    count = 0
    for m in pattern.finditer(content, region.start, region.end):
        if m.end() == m.start():
            # Zero-width matches anchor nothing to replace.
            continue
        count += 1
        guard.regex_match(count)
        yield m.start(), m.end()


def _compile_search(block: SearchReplaceBlock, strategy: MatchStrategy) -> "re.Pattern[str]":
    needle = block.search
    if strategy is MatchStrategy.CASE_INSENSITIVE:
        return re.compile(re.escape(needle), re.IGNORECASE)
    check_regex_safety(needle)
    flags = re.MULTILINE | (re.IGNORECASE if block.ignore_case else 0)
    try:
        return re.compile(needle, flags)
    except re.error as e:
        raise MalformedBlockError(f"invalid regex {needle!r}: {e}") from e


def _to_candidates(
    content: str, starts: Sequence[int], spans: Iterable[Tuple[int, int]]
) -> List[MatchCandidate]:
    out: List[MatchCandidate] = []
    for start, end in spans:
        out.append(
            MatchCandidate(
                start_line=line_of_offset(starts, start),
                end_line=line_of_offset(starts, end - 1),
                score=1.0,
                start=start,
                end=end,
            )
        )
    return out


# ---------- fuzzy pass ----------

def _middle_out(lo: int, hi: int, center: int) -> Iterator[int]:
    """Positions in [lo, hi], nearest to `center` first (lower one first on ties)."""
    if lo > hi:
        return
    center = max(lo, min(center, hi))
    yield center
    for d in range(1, max(center - lo, hi - center) + 1):
        if center - d >= lo:
            yield center - d
        if center + d <= hi:
            yield center + d


class _WindowText:
    """Per-line normalized content, so each window is assembled without re-normalizing."""

    def __init__(self, content: str, starts: Sequence[int], fold: bool = False):
        lines: List[str] = []
        for i, s in enumerate(starts):
            e = starts[i + 1] if i + 1 < len(starts) else len(content)
            lines.append(content[s:e].rstrip("\r\n"))
        self.norm = [normalize_quotes(ln.expandtabs(4).rstrip()) for ln in lines]
        if fold:
            self.norm = [ln.casefold() for ln in self.norm]
        self.indent = [len(ln) - len(ln.lstrip(" ")) if ln else -1 for ln in self.norm]

    def window(self, first: int, height: int) -> str:
        """Normalized text of 1-based lines first..first+height-1, common indent removed."""
        rows = self.norm[first - 1 : first - 1 + height]
        widths = [w for w in self.indent[first - 1 : first - 1 + height] if w >= 0]
        common = min(widths) if widths else 0
        return "\n".join(r[common:] for r in rows)


def _fuzzy_pass(
    content: str,
    starts: Sequence[int],
    block: SearchReplaceBlock,
    needle: str,
    region: _Region,
    config: MatchConfig,
    guard: PerformanceGuard,
    result: LocateResult,
    log,
) -> List[MatchCandidate]:
    search_lines = convert_eol(needle, "\n").split("\n")
    # A search ending in a line break replaces the last line's terminator too.
    trailing_eol = len(search_lines) > 1 and search_lines[-1] == ""
    if trailing_eol:
        search_lines.pop()
    height = len(search_lines)
    normalized = normalize_lines(search_lines)
    pattern = SearchPattern(normalized.casefold() if block.ignore_case else normalized)
    # Distance work per window scales with the number of 64-bit words in the pattern.
    words = 1 + pattern.length // 64

    first_pos, last_pos = region.first_line, region.last_line - height + 1
    if last_pos < first_pos:
        log.debug(f"Fuzzy: search is {height} lines, region has only {region.last_line - region.first_line + 1}")
        return []

    texts = _WindowText(content, starts, fold=block.ignore_case)
    scanned: set[int] = set()
    # Best rejected window by the cheap bound: (bound, line).
    near_miss: List[Tuple[float, int]] = []

    def span_of(pos: int) -> Tuple[int, int]:
        last = pos + height - 1
        span_start, span_end = line_span(content, starts, pos, last)
        if trailing_eol:
            span_end = starts[last] if last < len(starts) else len(content)
        return span_start, span_end

    def scan(positions: Iterable[int]) -> List[MatchCandidate]:
        found: List[MatchCandidate] = []
        for pos in positions:
            if pos in scanned:
                continue
            scanned.add(pos)
            window = texts.window(pos, height)
            guard.window(len(window), cost=len(window) * words)
            score = pattern.similarity(window, floor=config.threshold)
            if score is None:
                bound = pattern.upper_bound(window)
                if not near_miss or bound > near_miss[0][0]:
                    near_miss[:] = [(bound, pos)]
                continue
            score = min(score, FUZZY_CEILING)
            if result.best_score is None or score > result.best_score:
                result.best_score, result.best_line = score, pos
            span_start, span_end = span_of(pos)
            found.append(MatchCandidate(pos, pos + height - 1, score, span_start, span_end))
            log.debug(f"  Fuzzy candidate at line {pos}, score={score:.3f}")
        return found

    hinted = _hint_window(block, height, config.buffer_lines)
    candidates: List[MatchCandidate] = []
    if hinted is not None:
        lo, hi = max(first_pos, hinted[0]), min(last_pos, hinted[1])
        log.debug(f"Fuzzy: hinted pass over start lines [{lo}, {hi}] (hint={block.start_line_hint})")
        candidates = scan(_middle_out(lo, hi, block.start_line_hint))
    if not candidates:
        center = block.start_line_hint if block.start_line_hint is not None else first_pos
        log.debug(f"Fuzzy: full pass over start lines [{first_pos}, {last_pos}]")
        candidates = scan(_middle_out(first_pos, last_pos, center))
    if not candidates and near_miss and near_miss[0][0] >= DIAGNOSTIC_FLOOR:
        # Only the most promising rejected window is scored exactly.
        guard.check()
        pos = near_miss[0][1]
        score = pattern.similarity(texts.window(pos, height), floor=DIAGNOSTIC_FLOOR)
        if score is not None:
            result.best_score, result.best_line = min(score, FUZZY_CEILING), pos
            log.debug(f"Fuzzy: closest near miss at line {pos}, score={result.best_score:.3f}")
    return candidates


def _dedupe(candidates: List[MatchCandidate]) -> List[MatchCandidate]:
    """Drop windows that overlap an already-kept window with the same score."""
    kept: List[MatchCandidate] = []
    for cand in candidates:
        if any(k.score == cand.score and k.overlaps(cand) for k in kept):
            continue
        kept.append(cand)
    return kept


def _sort_key(block: SearchReplaceBlock):
    return lambda c: (-c.score, _hint_distance(block, c.start_line), c.start_line)


# ---------- entry point ----------

def locate(
    content: str,
    block: SearchReplaceBlock,
    *,
    scope: Optional[LineRange] = None,
    config: Optional[MatchConfig] = None,
    guard: Optional[PerformanceGuard] = None,
    logger: Optional[logging.Logger] = None,
    log: bool = False,
) -> LocateResult:
    """
    Find where `block.search` sits in `content`.

    Exact (or case-insensitive, or regex) occurrences come first and score 1.0.
    Only when there are none, and the block is not a regex, does the fuzzy
    pass slide a window of the search's height over the hinted neighbourhood,
    then over the rest of the searchable range. `scope` is a hard filter;
    the block's line hints only bias where the search looks first.

    Candidates come back sorted by score, then by distance to the hint.

    Raises:
        MalformedBlockError: empty search text, or an unusable regex.
    """
    log = resolve_logger(logger=logger, enabled=log, name=__name__, level=logging.DEBUG)
    if content is None:
        raise TypeError("content must be a string, not None")
    if not block.search:
        raise MalformedBlockError("search text is empty; there is nothing to anchor the edit on")

    config = config or DEFAULT_CONFIG
    starts = line_start_offsets(content)
    guard = guard or PerformanceGuard(config, line_count=len(starts))
    strategy = strategy_for(block)
    result = LocateResult(strategy=strategy, scoped=scope is not None)

    region = _region_for(content, starts, scope)
    if region is None:
        result.note = f"line range {scope.start}-{scope.end} is outside the file ({len(starts)} lines)"
        log.debug(f"Locate: {result.note}")
        return result

    log.debug(
        f"\n=== LOCATE ({strategy.value}, lines {region.first_line}-{region.last_line}, "
        f"hint={block.start_line_hint}) ==="
    )

    try:
        if strategy is MatchStrategy.EXACT:
            spans: Iterable[Tuple[int, int]] = _spans_exact(content, block.search, region)
        else:
            spans = _spans_pattern(content, _compile_search(block, strategy), region, guard)
        candidates = _to_candidates(content, starts, spans)
        log.debug(f"{strategy.value} pass: {len(candidates)} hit(s) at lines {[c.start_line for c in candidates]}")

        if candidates:
            hinted = _hint_window(block, block.search.count("\n") + 1, config.buffer_lines)
            if hinted is not None:
                near = [c for c in candidates if c.start_line <= hinted[1] and c.end_line >= hinted[0]]
                if near and len(near) < len(candidates):
                    log.debug(f"Hint keeps {len(near)} of {len(candidates)} exact hits")
                    candidates = near
        elif strategy is not MatchStrategy.REGEX:
            result.strategy = MatchStrategy.FUZZY
            candidates = _fuzzy_pass(content, starts, block, block.search, region, config, guard, result, log)
            candidates = _dedupe(sorted(candidates, key=_sort_key(block)))
    except BudgetExceeded as e:
        log.debug(f"Locate aborted: {e.reason}")
        result.aborted = e.reason
        result.windows = guard.windows
        return result

    result.windows = guard.windows
    result.candidates = sorted(candidates, key=_sort_key(block))
    log.debug(f"Locate: {len(result.candidates)} candidate(s), {guard.windows} fuzzy window(s) scored")
    return result
