# patchforge/extract/blocks.py
from __future__ import annotations

import re
from typing import List, Optional

from ..errors import MalformedBlockError
from ..models.blocks import SearchReplaceBlock

__all__ = ["parse_blocks", "SEARCH_MARKER", "DIVIDER", "SEPARATOR", "REPLACE_MARKER"]


SEARCH_MARKER = "<<<<<<< SEARCH"
DIVIDER = "-------"
SEPARATOR = "======="
REPLACE_MARKER = ">>>>>>> REPLACE"

_MARKERS = (SEARCH_MARKER, DIVIDER, SEPARATOR, REPLACE_MARKER)

# ':start_line:12' or 'start_line:12' (same for end_line) on its own line.
_HINT_RE = re.compile(r"^:?(start_line|end_line):\s*(\S*)\s*$")


def _unescape(line: str) -> str:
    """'\\=======' and friends stand for literal marker text inside content."""
    if line.startswith("\\"):
        tail = line[1:]
        if tail.rstrip() in _MARKERS:
            return tail
    return line


def _parse_hint(key: str, raw: str, index: int) -> int:
    if not raw.isdigit():
        raise MalformedBlockError(f"'{key}' hint must be a positive integer, got {raw!r}", index)
    value = int(raw)
    if value < 1:
        raise MalformedBlockError(f"'{key}' hint must be >= 1, got {value}", index)
    return value


def parse_blocks(
    patch: str,
    *,
    use_regex: bool = False,
    ignore_case: bool = False,
) -> List[SearchReplaceBlock]:
    """
    Tokenize a raw patch into ordered SearchReplaceBlock values.

    Grammar (one unit; units concatenate, blank lines between them are ignored):

        <<<<<<< SEARCH
        :start_line:N      (optional)
        :end_line:M        (optional)
        -------            (optional)
        search text
        =======
        replace text
        >>>>>>> REPLACE

    Markers must match exactly (trailing whitespace is tolerated). A content line
    that needs to start with a marker is written with a leading backslash.

    Raises:
        MalformedBlockError: for broken, missing or badly nested markers, bad hints,
            or a patch with no units.
    """
    if patch is None:
        raise TypeError("patch must be a string, not None")

    blocks: List[SearchReplaceBlock] = []
    # Normalize line endings of the patch itself; content EOLs are handled later.
    lines = patch.replace("\r\n", "\n").replace("\r", "\n").split("\n")

    state = "outside"  # outside -> header -> search -> replace -> outside
    index = -1
    search: List[str] = []
    replace: List[str] = []
    start_hint: Optional[int] = None
    end_hint: Optional[int] = None

    for lineno, raw in enumerate(lines, 1):
        marker = raw.rstrip()

        if state == "outside":
            if marker == SEARCH_MARKER:
                index += 1
                state = "header"
                search, replace = [], []
                start_hint = end_hint = None
                continue
            if not marker.strip():
                continue
            if marker in (SEPARATOR, REPLACE_MARKER, DIVIDER):
                raise MalformedBlockError(
                    f"'{marker}' on line {lineno} has no matching '{SEARCH_MARKER}'", index + 1
                )
            raise MalformedBlockError(
                f"Unexpected text outside a SEARCH/REPLACE block on line {lineno}: {raw[:60]!r}",
                index + 1,
            )

        if state == "header":
            m = _HINT_RE.match(marker)
            if m:
                key, value = m.group(1), m.group(2)
                parsed = _parse_hint(key, value, index)
                if key == "start_line":
                    if start_hint is not None:
                        raise MalformedBlockError("duplicate 'start_line' hint", index)
                    start_hint = parsed
                else:
                    if end_hint is not None:
                        raise MalformedBlockError("duplicate 'end_line' hint", index)
                    end_hint = parsed
                continue
            state = "search"
            if marker == DIVIDER:
                continue
            # fall through: this line already belongs to the search section

        if state == "search":
            if marker == SEPARATOR:
                state = "replace"
                continue
            if marker == SEARCH_MARKER:
                raise MalformedBlockError(
                    f"'{SEARCH_MARKER}' on line {lineno} opens a new block before the current one "
                    f"reached '{SEPARATOR}'",
                    index,
                )
            if marker == REPLACE_MARKER:
                raise MalformedBlockError(
                    f"'{REPLACE_MARKER}' on line {lineno} appears before the '{SEPARATOR}' separator",
                    index,
                )
            search.append(_unescape(raw))
            continue

        if state == "replace":
            if marker == REPLACE_MARKER:
                if start_hint is not None and end_hint is not None and end_hint < start_hint:
                    raise MalformedBlockError(
                        f"end_line hint {end_hint} is before start_line hint {start_hint}", index
                    )
                if end_hint is not None and start_hint is None:
                    raise MalformedBlockError("'end_line' hint given without 'start_line'", index)
                blocks.append(
                    SearchReplaceBlock(
                        search="\n".join(search),
                        replace="\n".join(replace),
                        start_line_hint=start_hint,
                        end_line_hint=end_hint,
                        use_regex=use_regex,
                        ignore_case=ignore_case,
                    )
                )
                state = "outside"
                continue
            if marker == SEPARATOR:
                raise MalformedBlockError(
                    f"second '{SEPARATOR}' on line {lineno}; escape it as '\\{SEPARATOR}' "
                    "if it is part of the replacement",
                    index,
                )
            if marker == SEARCH_MARKER:
                raise MalformedBlockError(
                    f"'{SEARCH_MARKER}' on line {lineno} opens a new block before "
                    f"'{REPLACE_MARKER}' closed the current one",
                    index,
                )
            replace.append(_unescape(raw))
            continue

    if state == "header" or state == "search":
        raise MalformedBlockError(f"missing '{SEPARATOR}' separator", index)
    if state == "replace":
        raise MalformedBlockError(f"missing '{REPLACE_MARKER}' marker", index)
    if not blocks:
        raise MalformedBlockError(
            f"no SEARCH/REPLACE blocks found; expected '{SEARCH_MARKER}' ... "
            f"'{SEPARATOR}' ... '{REPLACE_MARKER}'"
        )
    return blocks
