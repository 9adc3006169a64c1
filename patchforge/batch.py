# patchforge/batch.py
from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from ._logging import resolve_logger
from .config import MatchConfig
from .core import apply_blocks
from .errors import MalformedBlockError, PathViolation
from .extract.blocks import parse_blocks
from .models.blocks import SearchReplaceBlock
from .models.outcome import BatchResult, FailPart, MalformedBlock
from .utils.ignore import get_ignore_spec
from .utils.paths import normalized_path, relative_posix

__all__ = ["PatchUnit", "FilePatch", "apply_multi_file", "apply_multi_file_from_disk"]


DEFAULT_MAX_WORKERS = 8


@dataclass
class PatchUnit:
    """One patch string for a file, with an optional start-line hint for its blocks."""

    content: str
    start_line: Optional[int] = None


@dataclass
class FilePatch:
    """All patch units addressed to one path, in the order they should apply."""

    path: str
    units: List[PatchUnit] = field(default_factory=list)


def _merge(file_patches: Sequence[FilePatch]) -> Dict[str, List[PatchUnit]]:
    """Group units by path, keeping first-seen path order and unit order."""
    merged: Dict[str, List[PatchUnit]] = {}
    for fp in file_patches:
        merged.setdefault(fp.path, []).extend(fp.units)
    return merged


def _run_file(
    path: str,
    content: str,
    units: Sequence[PatchUnit],
    use_regex: bool,
    ignore_case: bool,
    config: Optional[MatchConfig],
    log,
) -> BatchResult:
    blocks: List[SearchReplaceBlock] = []
    for unit in units:
        try:
            parsed = parse_blocks(unit.content, use_regex=use_regex, ignore_case=ignore_case)
        except MalformedBlockError as e:
            index = len(blocks) + (e.index if e.index is not None else 0)
            log.debug(f"{path}: patch rejected at block {index + 1}: {e.reason}")
            return BatchResult(success=False, fail_parts=[FailPart(index, MalformedBlock(e.reason))])
        blocks.extend(b.with_hint(unit.start_line) for b in parsed)
    log.debug(f"{path}: {len(blocks)} block(s) from {len(units)} unit(s)")
    return apply_blocks(content, blocks, config=config, logger=log)


def apply_multi_file(
    contents: Mapping[str, str],
    file_patches: Sequence[FilePatch],
    *,
    use_regex: bool = False,
    ignore_case: bool = False,
    config: Optional[MatchConfig] = None,
    max_workers: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
    log: bool = False,
) -> Dict[str, BatchResult]:
    """
    Apply each file's patch units to that file's content, independently.

    `contents` maps path -> current text. Units for one path (duplicate
    FilePatch entries included) apply in order, their blocks numbered as one
    sequence. Files run on a bounded thread pool; the returned dict is keyed
    by path in input order. A path with no entry in `contents` gets a result
    with `error` set.
    """
    log = resolve_logger(logger=logger, enabled=log, name=__name__, level=logging.DEBUG)
    merged = _merge(file_patches)
    results: Dict[str, BatchResult] = {}
    runnable: Dict[str, List[PatchUnit]] = {}
    for path, units in merged.items():
        if path not in contents or contents[path] is None:
            results[path] = BatchResult(success=False, error=f"No content provided for '{path}'")
        else:
            runnable[path] = units

    if runnable:
        workers = max_workers or min(DEFAULT_MAX_WORKERS, len(runnable))
        log.debug(f"\n=== MULTI-FILE: {len(runnable)} file(s), {workers} worker(s) ===")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(
                    _run_file, path, contents[path], units, use_regex, ignore_case, config, log
                ): path
                for path, units in runnable.items()
            }
            for future in as_completed(futures):
                path = futures[future]
                try:
                    results[path] = future.result()
                except Exception as exc:
                    log.debug(f"{path}: failed with {exc!r}")
                    results[path] = BatchResult(success=False, error=f"{type(exc).__name__}: {exc}")

    return {path: results[path] for path in merged}


def apply_multi_file_from_disk(
    base_path: str,
    file_patches: Sequence[FilePatch],
    *,
    respect_ignore: bool = True,
    encoding: str = "utf-8",
    use_regex: bool = False,
    ignore_case: bool = False,
    config: Optional[MatchConfig] = None,
    max_workers: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
    log: bool = False,
) -> Dict[str, BatchResult]:
    """
    Read each patched file under `base_path` and apply its units.

    Paths are relative to `base_path` and must stay inside it. With
    `respect_ignore`, files matched by .gitignore/.patchforgeignore rules are
    refused. Nothing is written back: the edited text is in each result's
    `content`.
    """
    log = resolve_logger(logger=logger, enabled=log, name=__name__, level=logging.DEBUG)
    base_real = os.path.realpath(base_path)
    if not os.path.isdir(base_real):
        raise ValueError(f"base_path is not a directory: {base_path!r}")
    spec = get_ignore_spec(base_real) if respect_ignore else None

    merged = _merge(file_patches)
    contents: Dict[str, str] = {}
    errors: Dict[str, str] = {}
    for path in merged:
        try:
            resolved = normalized_path(base_real, path, check_exists=True)
            if spec is not None and spec.match_file(relative_posix(base_real, resolved)):
                raise PathViolation(f"Path '{path}' is excluded by ignore rules")
            # newline="" keeps CRLF/CR endings as they are on disk.
            with open(resolved, "r", encoding=encoding, newline="") as f:
                contents[path] = f.read()
        except (PathViolation, OSError, UnicodeDecodeError) as e:
            log.debug(f"{path}: not read ({e})")
            errors[path] = str(e)

    readable = [FilePatch(path, units) for path, units in merged.items() if path in contents]
    results = apply_multi_file(
        contents,
        readable,
        use_regex=use_regex,
        ignore_case=ignore_case,
        config=config,
        max_workers=max_workers,
        logger=log,
    )
    return {
        path: results[path] if path in results else BatchResult(success=False, error=errors[path])
        for path in merged
    }
