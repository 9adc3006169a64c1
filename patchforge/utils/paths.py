# patchforge/utils/paths.py
import os

from ..errors.path import PathViolation

__all__ = ["normalized_path", "relative_posix"]


def normalized_path(base_real: str, rel_path: str, check_exists: bool = False) -> str:
    """
    Join a base-relative path onto `base_real` and enforce containment.
    Raises PathViolation if the resolved path escapes base_real, or if
    check_exists is set and nothing is there.
    """
    if not rel_path or os.path.isabs(rel_path) or rel_path.startswith(("/", "\\")):
        raise PathViolation(f"Path must be relative to the base directory: '{rel_path}'")
    target_path = os.path.join(base_real, *rel_path.replace("\\", "/").split("/"))
    # realpath follows symlinks, so a link pointing out of the tree is caught too.
    resolved = os.path.realpath(target_path) if check_exists else os.path.abspath(target_path)
    if os.path.commonpath([base_real, resolved]) != base_real:
        raise PathViolation(f"Path traversal attempt detected for '{rel_path}'")
    if check_exists and not os.path.isfile(resolved):
        raise PathViolation(f"File not found: '{rel_path}'")
    return resolved


def relative_posix(base_real: str, resolved: str) -> str:
    """Forward-slash path of `resolved` relative to `base_real`, as ignore rules expect."""
    return os.path.relpath(resolved, base_real).replace(os.sep, "/")
