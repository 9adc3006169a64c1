"""
Opt-in logging for patchforge.

Library code never configures handlers. Every public entry point takes
`logger=None, log=False`; `resolve_logger` turns that pair into something
callable:

    log = resolve_logger(logger=logger, enabled=log, name=__name__, level=logging.DEBUG)
    log.debug(f"Fuzzy: full pass over start lines [{lo}, {hi}]")

A passed logger wins and is used untouched. With `log=True` the records go
to a logger under the "patchforge" namespace, so one `logging.getLogger
("patchforge")` call by the application controls the whole library.
Otherwise a NoopLogger swallows the calls.
"""
from __future__ import annotations

import logging

__all__ = ["ROOT_LOGGER", "NoopLogger", "resolve_logger"]

ROOT_LOGGER = "patchforge"


class NoopLogger:
    """Accepts the stdlib logger call surface and does nothing."""

    def debug(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        pass

    info = warning = error = exception = critical = debug

    def log(self, level: int, *args, **kwargs) -> None:  # type: ignore[no-untyped-def]
        pass

    def isEnabledFor(self, level: int) -> bool:  # noqa: N802 - mirrors logging.Logger
        return False


def _qualified(name: str | None) -> str:
    if not name:
        return ROOT_LOGGER
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return name
    return f"{ROOT_LOGGER}.{name}"


def resolve_logger(
    logger: logging.Logger | None = None,
    *,
    enabled: bool = False,
    name: str | None = None,
    level: int = logging.INFO,
) -> logging.Logger | NoopLogger:
    """
    Return a usable logger according to the opt-in policy.

    - If `logger` is provided, use it as is.
    - Else if `enabled` is True, get the named logger under the "patchforge"
      namespace. Its level is lowered to `level` when needed, never raised,
      so an application that already asked for DEBUG keeps it.
    - Else return a NoopLogger that ignores calls.
    """
    if logger is not None:
        return logger
    if not enabled:
        return NoopLogger()
    lg = logging.getLogger(_qualified(name))
    if lg.level == logging.NOTSET or lg.level > level:
        lg.setLevel(level)
    # Records bubble to the root so pytest's caplog sees them; no handler of our own.
    lg.propagate = True
    return lg
