# patchforge/utils/ignore.py
import logging
import os
from typing import List

import pathspec

__all__ = ["get_ignore_spec", "IGNORE_FILES"]


log = logging.getLogger(__name__)

IGNORE_FILES = (".gitignore", ".patchforgeignore")


def _read_lines(path: str) -> List[str]:
    with open(path, "r", encoding="utf-8", errors="ignore") as f:
        return f.read().splitlines()


def get_ignore_spec(path: str) -> pathspec.PathSpec:
    """
    Return a PathSpec for files patchforge must not touch under `path`.

    Patterns come from the nearest .gitignore found walking upward from `path`
    plus a .patchforgeignore in `path` itself. '.git/' is always ignored.
    Unreadable ignore files are skipped.
    """
    defaults: List[str] = [".git/"]
    lines: List[str] = list(defaults)

    base = os.path.abspath(path or ".")
    if os.path.isfile(base):
        base = os.path.dirname(base)

    cur = base
    while True:
        gi = os.path.join(cur, ".gitignore")
        if os.path.exists(gi):
            try:
                lines.extend(_read_lines(gi))
            except OSError as e:
                log.debug("Skipping unreadable %s: %s", gi, e)
            break
        parent = os.path.dirname(cur)
        if parent == cur:
            break
        cur = parent

    own = os.path.join(base, ".patchforgeignore")
    if os.path.exists(own):
        try:
            lines.extend(_read_lines(own))
        except OSError as e:
            log.debug("Skipping unreadable %s: %s", own, e)

    return pathspec.PathSpec.from_lines("gitwildmatch", lines)
