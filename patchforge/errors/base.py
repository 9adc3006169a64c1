class PatchforgeError(Exception):
    """Base class for errors raised inside patchforge."""
