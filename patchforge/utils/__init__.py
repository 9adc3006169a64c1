# patchforge/utils/__init__.py
from .ignore import get_ignore_spec
from .paths import normalized_path
from .text import convert_eol, detect_eol, strip_line_numbers

__all__ = [
    "get_ignore_spec",
    "normalized_path",
    "convert_eol",
    "detect_eol",
    "strip_line_numbers",
]
