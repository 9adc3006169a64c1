from __future__ import annotations

from .base import PatchforgeError


class MalformedBlockError(PatchforgeError):
    """
    Raised when a patch's SEARCH/REPLACE scaffolding, or a regex search, cannot be used.

    `index` is the 0-based position of the offending unit within the patch, when known.
    Orchestrators catch this and report it as a MalformedBlock outcome.
    """

    def __init__(self, reason: str, index: int | None = None):
        self.reason = reason
        self.index = index
        where = f"block {index + 1}: " if index is not None else ""
        super().__init__(f"{where}{reason}")
