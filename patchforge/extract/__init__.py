from .blocks import DIVIDER, REPLACE_MARKER, SEARCH_MARKER, SEPARATOR, parse_blocks

__all__ = ["parse_blocks", "SEARCH_MARKER", "DIVIDER", "SEPARATOR", "REPLACE_MARKER"]
