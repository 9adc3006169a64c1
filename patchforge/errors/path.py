from .base import PatchforgeError


class PathViolation(PatchforgeError):
    """A file path resolved outside the base directory, or is blocked by ignore rules."""
