"""
Working-directory and input-file path resolution.

A subject id such as ``Pert/sub-0001`` is split into a folder fragment
(``Pert``) and a bare identifier (``sub-0001``).  The fragment is placed

* below the invocation directory when it starts with ``.``,
* as-is when it is absolute,
* below the root folder otherwise (the root folder itself when empty).

The dataset file is ``<working_dir>/<bare id>.mat``.  A trailing ``,N`` on
the bare id selects the N-th subject of a multi-subject dataset and never
appears in the computed paths.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import structlog

log = structlog.get_logger()

DATASET_SUFFIX = ".mat"
_SUBINDEX = re.compile(r",(\d+)$")


@dataclass(frozen=True)
class SubjectLocation:
    """Where one subject's dataset lives.

    Attributes:
        key: Bare identifier including any ``,N`` suffix; unique per batch.
        subject_id: Bare identifier without the suffix.
        dataset_subindex: ``N`` from the suffix, if present.
        working_dir: Folder holding the dataset file.
        dataset_path: Dataset file.
    """

    key: str
    subject_id: str
    dataset_subindex: Optional[int]
    working_dir: Path
    dataset_path: Path


def place_fragment(fragment: str, start_dir: Path, root: Path) -> Path:
    """Return the folder a path fragment points to (see module doc-string)."""
    if not fragment:
        return Path(root)
    if fragment.startswith("."):
        return Path(os.path.normpath(os.path.join(str(start_dir), fragment)))
    if fragment.startswith("/") or os.path.isabs(fragment):
        return Path(fragment)
    return Path(os.path.normpath(os.path.join(str(root), fragment)))


def split_subindex(name: str) -> tuple[str, Optional[int]]:
    """Split ``"proj,3"`` into ``("proj", 3)``; other names get ``None``."""
    m = _SUBINDEX.search(name)
    if m is None:
        return name, None
    return name[: m.start()], int(m.group(1))


def locate_subject(subject_id: str, start_dir: Path, root: Path) -> SubjectLocation:
    """Compute the working directory and dataset file for *subject_id*."""
    fragment, name = os.path.split(subject_id)
    bare, index = split_subindex(name)
    bare = os.path.splitext(bare)[0]
    key = bare if index is None else f"{bare},{index}"
    working_dir = place_fragment(fragment, start_dir, root)
    return SubjectLocation(
        key=key,
        subject_id=bare,
        dataset_subindex=index,
        working_dir=working_dir,
        dataset_path=working_dir / f"{bare}{DATASET_SUFFIX}",
    )


def ensure_working_dir(path: Path) -> bool:
    """Create *path* with parents; failures are logged, not raised.

    A folder that cannot be created surfaces later when the backend tries to
    write the dataset file.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        log.warning("working_dir.create_failed", path=str(path), error=str(exc))
        return False
    return True


def resolve_info_path(
    entry: Any,
    start_dir: Path,
    root: Path,
    *,
    library_dir: Optional[Path] = None,
    classify: bool = True,
) -> Any:
    """Resolve a pipeline/subject/design info entry.

    Args:
        entry: File name, path, in-memory mapping, or empty value.
        start_dir: Invocation directory, used for ``./`` entries.
        root: Root folder, used for entries without a leading ``.`` or ``/``.
        library_dir: Folder of shared configs; a bare file name found there
            resolves to it before any other rule.
        classify: Apply the ``.`` / ``/`` / root rule.  When ``False`` the
            entry is returned unchanged unless found in *library_dir*.

    Returns:
        The resolved path as a string, the mapping unchanged, or ``None``.
    """
    if not isinstance(entry, str):
        return entry if entry else None
    if not entry:
        return None
    if library_dir is not None and os.path.basename(entry) == entry:
        candidate = Path(library_dir) / entry
        if candidate.is_file():
            return str(candidate)
    if not classify:
        return entry
    if entry.startswith("."):
        return os.path.normpath(os.path.join(str(start_dir), entry))
    if entry.startswith("/") or os.path.isabs(entry):
        return entry
    return os.path.join(str(root), entry)


__all__ = [
    "DATASET_SUFFIX",
    "SubjectLocation",
    "place_fragment",
    "split_subindex",
    "locate_subject",
    "ensure_working_dir",
    "resolve_info_path",
]
