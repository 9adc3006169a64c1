# patchforge/utils/text.py
from __future__ import annotations

import bisect
import re
from typing import List, Sequence, Tuple

__all__ = [
    "detect_eol",
    "convert_eol",
    "line_start_offsets",
    "line_of_offset",
    "line_span",
    "normalize_quotes",
    "normalize_lines",
    "strip_line_numbers",
]


def detect_eol(s: str) -> str:
    if "\r\n" in s:
        return "\r\n"
    if "\r" in s:
        return "\r"
    return "\n"


def convert_eol(text: str, eol: str) -> str:
    """Rewrite every line ending in `text` to `eol`."""
    flat = text.replace("\r\n", "\n").replace("\r", "\n")
    return flat if eol == "\n" else flat.replace("\n", eol)


_EOL_RE = re.compile(r"\r\n|\r|\n")


def line_start_offsets(content: str) -> List[int]:
    """
    Char offset at which each line starts. Line i (0-based) is
    content[starts[i]:starts[i + 1]] including its terminator.
    A trailing line break does not open an extra empty line.
    """
    starts = [0]
    for m in _EOL_RE.finditer(content):
        starts.append(m.end())
    if len(starts) > 1 and starts[-1] == len(content):
        starts.pop()
    return starts


def line_of_offset(starts: Sequence[int], offset: int) -> int:
    """1-based line number containing char `offset`."""
    return max(1, bisect.bisect_right(starts, offset))


def line_span(content: str, starts: Sequence[int], first: int, last: int) -> Tuple[int, int]:
    """
    Char span [start, end) of 1-based lines first..last, excluding the final
    line's terminator so that replacing the span keeps the following line break.
    """
    start = starts[first - 1]
    end = starts[last] if last < len(starts) else len(content)
    text = content[start:end]
    if text.endswith("\r\n"):
        end -= 2
    elif text.endswith(("\n", "\r")):
        end -= 1
    return start, end


_QUOTES = {
    "‘": "'", "’": "'", "‛": "'",
    "“": '"', "”": '"',
}


def normalize_quotes(s: str) -> str:
    """Fold common Unicode quotes to ASCII to reduce spurious mismatches."""
    return "".join(_QUOTES.get(ch, ch) for ch in s)


def _leading_width(s: str) -> int:
    return len(s) - len(s.lstrip(" "))


def normalize_lines(lines: Sequence[str], tab_size: int = 4) -> str:
    """
    Canonical form used for fuzzy scoring only: tabs expanded, trailing
    whitespace dropped, quotes folded, and the indentation shared by all
    non-blank lines removed so a re-indented snippet still lines up.
    """
    cleaned = [normalize_quotes(ln.expandtabs(tab_size).rstrip()) for ln in lines]
    widths = [_leading_width(ln) for ln in cleaned if ln]
    common = min(widths) if widths else 0
    return "\n".join(ln[common:] for ln in cleaned)


_NUMBAR_RE = re.compile(r"^\s*\d+\s*\|\s?")


def strip_line_numbers(text: str) -> Tuple[str, bool]:
    """
    Remove leading 'NN | ' prefixes copied from numbered file listings.
    Only strips when every non-blank line carries one; returns (text, stripped).
    """
    lines = text.split("\n")
    body = [ln for ln in lines if ln.strip()]
    if not body or not all(_NUMBAR_RE.match(ln) for ln in body):
        return text, False
    return "\n".join(_NUMBAR_RE.sub("", ln) if ln.strip() else ln for ln in lines), True
