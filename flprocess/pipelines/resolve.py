"""
Resolution chain: typed options → ordered list of :class:`SubjectRecord`.

The steps run in a fixed order and every one of them finishes before any
folder is created, so a batch that fails validation leaves no trace on
disk:

1. subject-info globs are expanded,
2. subject ids are globbed or derived from the subject-info names,
3. the per-subject lists are checked against each other,
4. each id is placed below the root folder / invocation directory and the
   bare identifiers are checked for repeats,
5. working directories are created and the records are built.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

import structlog

from ..config.schema import ProcessOptions
from ..errors import PatternError
from ..stages import Stage
from .cardinality import ensure_unique, validate_cardinality
from .paths import ensure_working_dir, locate_subject, resolve_info_path
from .patterns import glob_subject_ids, glob_subject_info, is_glob
from .subject_ids import derive_subject_ids, is_template
from .types import SubjectRecord

log = structlog.get_logger()


@dataclass(frozen=True)
class ResolutionContext:
    """Folders against which relative inputs are resolved.

    Attributes:
        start_dir: Invocation directory (``./`` prefixes, relative globs).
        root: Root folder for ids and files without a ``.`` or ``/`` prefix.
        library_dir: Optional folder of shared pipeline/design configs.
    """

    start_dir: Path
    root: Path
    library_dir: Optional[Path] = None


def _as_list(value: Any) -> list[Any]:
    """Return *value* as a list; ``None`` and ``""`` give an empty list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _at(items: Sequence[Any], index: int) -> Any:
    """Return ``items[index]`` or ``None`` past the end."""
    return items[index] if index < len(items) else None


def _expand_subject_info(entries: list[Any], start_dir: Path) -> list[Any]:
    """Replace glob entries by the files they match."""
    out: list[Any] = []
    for entry in entries:
        if is_glob(entry):
            out.extend(glob_subject_info(entry, start_dir))
        else:
            out.append(entry)
    return out


def _expand_ids(subject_id: Any, subject_info: list[Any], start_dir: Path) -> list[str]:
    """Return the subject ids before cardinality checks.

    A single glob id is matched against the file-system first.  When nothing
    matches and the id is also a template, the ids are derived from the
    subject-info names instead; otherwise the empty match is fatal.

    Raises:
        PatternError: When a non-template glob matches nothing.
    """
    ids = [str(i) for i in _as_list(subject_id)]
    if len(ids) != 1:
        return ids if ids else derive_subject_ids(None, subject_info)

    single = ids[0]
    if is_glob(single):
        matches = glob_subject_ids(single, start_dir)
        if matches:
            return matches
        if not (is_template(single) and subject_info):
            raise PatternError(f"No match to {single}")
        log.info("subject_id.no_match", pattern=single, fallback="subject_info names")
    if is_template(single):
        return derive_subject_ids(single, subject_info)
    return ids


def resolve_subjects(
    stages: Sequence[Stage],
    options: ProcessOptions,
    ctx: ResolutionContext,
) -> list[SubjectRecord]:
    """Resolve *options* into one :class:`SubjectRecord` per subject.

    Args:
        stages: Requested stages; they decide which counts are checked.
        options: Typed options from :func:`flprocess.options.normalize_options`.
        ctx: Folders used for relative inputs.

    Returns:
        Records in input order.  Resolving the same inputs twice yields
        equal records.

    Raises:
        UsageError: For missing inputs, count mismatches, invalid stage
            combinations or repeated subject ids.
        PatternError: For globs that match nothing.
    """
    subject_info = _expand_subject_info(_as_list(options.subject_info), ctx.start_dir)
    subject_ids = _expand_ids(options.subject_id, subject_info, ctx.start_dir)

    inputs = validate_cardinality(
        stages,
        subject_ids,
        subject_info,
        _as_list(options.pipeline_info),
        _as_list(options.design_info),
        donotexpand=options.donotexpand,
    )

    locations = [locate_subject(i, ctx.start_dir, ctx.root) for i in inputs.subject_ids]
    ensure_unique(loc.key for loc in locations)

    records: list[SubjectRecord] = []
    for n, loc in enumerate(locations):
        ensure_working_dir(loc.working_dir)
        records.append(
            SubjectRecord(
                subject_id=loc.subject_id,
                dataset_subindex=loc.dataset_subindex,
                working_dir=loc.working_dir,
                dataset_path=loc.dataset_path,
                pipeline_info=resolve_info_path(
                    _at(inputs.pipeline_info, n), ctx.start_dir, ctx.root, library_dir=ctx.library_dir
                ),
                subject_info=resolve_info_path(_at(inputs.subject_info, n), ctx.start_dir, ctx.root),
                design_info=resolve_info_path(
                    _at(inputs.design_info, n),
                    ctx.start_dir,
                    ctx.root,
                    library_dir=ctx.library_dir,
                    classify=False,
                ),
            )
        )

    log.info("subjects.resolved", count=len(records), ids=[r.label for r in records])
    return records


__all__ = ["ResolutionContext", "resolve_subjects"]
