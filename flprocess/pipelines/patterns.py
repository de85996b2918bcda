"""
Glob expansion for ``subject_id`` and ``subject_info`` inputs.

A string containing ``*`` or ``?`` is a pattern.  The file-name part of the
pattern is matched recursively below its folder part (``/data/Sub*.cfg``
finds ``/data/Sub1.cfg`` as well as ``/data/site2/Sub7.cfg``); matching is
case-sensitive.  When the folder part itself holds wildcards the
pattern is handed to :func:`glob.glob` unchanged.

Results are absolute, normalised paths in a stable order: the top folder
first, then sub-folders alphabetically, entries sorted within each folder.
"""

from __future__ import annotations

import fnmatch
import glob
import os
from pathlib import Path
from typing import Iterable

import structlog

from ..errors import PatternError

log = structlog.get_logger()

GLOB_CHARS = "*?"


def is_glob(value: object) -> bool:
    """Return ``True`` when *value* is a string holding glob wildcards."""
    return isinstance(value, str) and any(c in value for c in GLOB_CHARS)


def _walk(base: Path, name: str, *, include_dirs: bool) -> Iterable[str]:
    """Yield entries below *base* whose name matches *name*."""
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames.sort()
        entries = list(filenames)
        if include_dirs:
            entries += dirnames
        for entry in sorted(entries):
            if fnmatch.fnmatchcase(entry, name):
                yield os.path.join(dirpath, entry)


def find_matches(pattern: str, start_dir: Path, *, include_dirs: bool = False) -> list[str]:
    """Expand *pattern* into matching paths.

    Args:
        pattern: Glob pattern; relative patterns are anchored at *start_dir*.
        start_dir: Invocation directory.
        include_dirs: Also match folders, not only files.

    Returns:
        Matching absolute paths (possibly empty).
    """
    pattern = os.path.expanduser(pattern)
    if not os.path.isabs(pattern):
        pattern = os.path.join(str(start_dir), pattern)
    folder, name = os.path.split(pattern)

    if is_glob(folder):
        hits = sorted(glob.glob(pattern, recursive=True))
        if not include_dirs:
            hits = [h for h in hits if os.path.isfile(h)]
        return [os.path.normpath(h) for h in hits]

    base = Path(folder)
    if not base.is_dir():
        return []
    return [os.path.normpath(p) for p in _walk(base, name, include_dirs=include_dirs)]


def glob_subject_info(pattern: str, start_dir: Path) -> list[str]:
    """Return subject-info files matching *pattern*.

    Raises:
        PatternError: When nothing matches.
    """
    matches = find_matches(pattern, start_dir)
    if not matches:
        raise PatternError(f"No match to {pattern}")
    log.info("subject_info.matched", pattern=pattern, files=matches)
    return matches


def glob_subject_ids(pattern: str, start_dir: Path) -> list[str]:
    """Return subject ids (matches without extension) for *pattern*.

    A dataset file and its companion folder (``sub-01.mat`` and ``sub-01/``)
    collapse into one id.  An empty list means nothing matched; the caller
    decides whether that is fatal.
    """
    ids: list[str] = []
    for match in find_matches(pattern, start_dir, include_dirs=True):
        stem = os.path.splitext(match)[0]
        if stem not in ids:
            ids.append(stem)
    if ids:
        log.info("subject_id.matched", pattern=pattern, ids=ids)
    return ids


__all__ = ["GLOB_CHARS", "is_glob", "find_matches", "glob_subject_info", "glob_subject_ids"]
