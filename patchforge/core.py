# patchforge/core.py
from __future__ import annotations

import logging
from dataclasses import replace as _replace
from typing import List, Optional, Sequence, Tuple, Union

from ._logging import resolve_logger
from .commit.apply import apply_replacement
from .config import DEFAULT_CONFIG, MatchConfig
from .errors import MalformedBlockError
from .extract.blocks import parse_blocks
from .match.locate import locate
from .match.policy import resolve
from .models.blocks import LineRange, MatchCandidate, SearchReplaceBlock
from .models.outcome import Applied, ApplyOutcome, BatchResult, FailPart, MalformedBlock
from .utils.text import convert_eol, detect_eol, line_start_offsets, strip_line_numbers

__all__ = ["apply_diff", "apply_blocks", "search_and_replace"]


ScopeLike = Union[LineRange, Tuple[int, int], None]


def _as_scope(scope: ScopeLike) -> Optional[LineRange]:
    if scope is None or isinstance(scope, LineRange):
        return scope
    start, end = scope
    return LineRange(start, end)


def _prepare_block(block: SearchReplaceBlock, eol: str, log) -> SearchReplaceBlock:
    """Strip copied line-number gutters and match the content's line endings."""
    search, replace = block.search, block.replace
    if not block.use_regex:
        search, stripped = strip_line_numbers(search)
        if stripped:
            replace, _ = strip_line_numbers(replace)
            log.debug("Stripped line-number prefixes from search/replace text")
    if eol != "\n":
        search, replace = convert_eol(search, eol), convert_eol(replace, eol)
    if search == block.search and replace == block.replace:
        return block
    return _replace(block, search=search, replace=replace)


def _apply_one(
    content: str,
    block: SearchReplaceBlock,
    scope: Optional[LineRange],
    config: MatchConfig,
    log,
) -> ApplyOutcome:
    try:
        result = locate(content, block, scope=scope, config=config, logger=log)
    except MalformedBlockError as e:
        return MalformedBlock(e.reason)
    chosen = resolve(result.candidates, scoped=scope is not None, locate_result=result, config=config)
    if isinstance(chosen, MatchCandidate):
        return Applied(apply_replacement(content, chosen, block))
    return chosen


def apply_blocks(
    content: str,
    blocks: Sequence[SearchReplaceBlock],
    *,
    start_line: Optional[int] = None,
    scope: ScopeLike = None,
    config: Optional[MatchConfig] = None,
    logger: Optional[logging.Logger] = None,
    log: bool = False,
) -> BatchResult:
    """
    Apply already-parsed blocks to `content`, strictly in order.

    Each block is matched against the output of the blocks before it. A failed
    block is recorded and skipped; it never undoes earlier edits. `start_line`
    becomes the hint of every block that does not carry its own.
    """
    log = resolve_logger(logger=logger, enabled=log, name=__name__, level=logging.DEBUG)
    if content is None:
        raise TypeError("content must be a string, not None")
    config = config or DEFAULT_CONFIG
    scope = _as_scope(scope)
    eol = detect_eol(content)

    working = content
    applied: List[int] = []
    fail_parts: List[FailPart] = []
    for i, block in enumerate(blocks):
        block = _prepare_block(block.with_hint(start_line), eol, log)
        log.debug(f"\n=== BLOCK {i + 1}/{len(blocks)} (hint={block.start_line_hint}) ===")
        outcome = _apply_one(working, block, scope, config, log)
        if isinstance(outcome, Applied):
            working = outcome.content
            applied.append(i)
            log.debug(f"Block {i + 1}: applied")
        else:
            fail_parts.append(FailPart(i, outcome))
            log.debug(f"Block {i + 1}: {outcome.message}")

    ok = not fail_parts
    return BatchResult(
        success=ok,
        content=working if (applied or ok) else None,
        fail_parts=fail_parts,
        applied=applied,
    )


def apply_diff(
    content: str,
    patch: str,
    *,
    start_line: Optional[int] = None,
    use_regex: bool = False,
    ignore_case: bool = False,
    scope: ScopeLike = None,
    config: Optional[MatchConfig] = None,
    logger: Optional[logging.Logger] = None,
    log: bool = False,
) -> BatchResult:
    """
    Parse a SEARCH/REPLACE patch and apply its blocks to `content`.

    A patch whose scaffolding is broken is rejected as a whole: nothing is
    applied and the offending unit is reported as MalformedBlock.

    Example:
        >>> result = apply_diff("a = 1\\n", "<<<<<<< SEARCH\\na = 1\\n=======\\na = 2\\n>>>>>>> REPLACE")
        >>> result.success, result.content
        (True, 'a = 2\\n')
    """
    log = resolve_logger(logger=logger, enabled=log, name=__name__, level=logging.DEBUG)
    if content is None:
        raise TypeError("content must be a string, not None")
    try:
        blocks = parse_blocks(patch, use_regex=use_regex, ignore_case=ignore_case)
    except MalformedBlockError as e:
        log.debug(f"Patch rejected: {e}")
        index = e.index if e.index is not None else 0
        return BatchResult(success=False, fail_parts=[FailPart(index, MalformedBlock(e.reason))])
    log.debug(f"Parsed {len(blocks)} block(s)")
    return apply_blocks(content, blocks, start_line=start_line, scope=scope, config=config, logger=log)


def search_and_replace(
    content: str,
    search: str,
    replace: str,
    *,
    use_regex: bool = False,
    ignore_case: bool = False,
    start_line: Optional[int] = None,
    end_line: Optional[int] = None,
    config: Optional[MatchConfig] = None,
    logger: Optional[logging.Logger] = None,
    log: bool = False,
) -> ApplyOutcome:
    """
    Replace one occurrence of `search` without any patch scaffolding.

    `start_line`/`end_line` (1-based, inclusive) restrict where the search may
    match; either may be omitted to leave that side open.
    """
    log = resolve_logger(logger=logger, enabled=log, name=__name__, level=logging.DEBUG)
    if content is None:
        raise TypeError("content must be a string, not None")
    if search is None or replace is None:
        raise TypeError("search and replace must be strings, not None")
    config = config or DEFAULT_CONFIG

    scope: Optional[LineRange] = None
    if start_line is not None or end_line is not None:
        first = start_line if start_line is not None else 1
        last = end_line if end_line is not None else max(first, len(line_start_offsets(content)))
        scope = LineRange(first, last)

    block = SearchReplaceBlock(
        search=search,
        replace=replace,
        start_line_hint=start_line,
        use_regex=use_regex,
        ignore_case=ignore_case,
    )
    block = _prepare_block(block, detect_eol(content), log)
    outcome = _apply_one(content, block, scope, config, log)
    log.debug(f"search_and_replace: {outcome.message}")
    return outcome
