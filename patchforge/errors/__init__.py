from .base import PatchforgeError
from .block import MalformedBlockError
from .path import PathViolation

__all__ = ["PatchforgeError", "MalformedBlockError", "PathViolation"]
