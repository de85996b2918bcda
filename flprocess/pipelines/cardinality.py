"""
Consistency checks between subject ids and the per-subject input lists.

The helpers are pure: they take the lists produced by the earlier steps and
return new tuples (expanded ids, broadcast pipeline/design files) without
touching their inputs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

import structlog

from ..errors import UsageError
from ..stages import Stage, expand_stages
from .subject_ids import info_basename

log = structlog.get_logger()


@dataclass(frozen=True)
class ValidatedInputs:
    """Per-subject inputs whose lengths are mutually consistent.

    ``pipeline_info`` and ``design_info`` are either empty or have exactly
    one entry per subject id.  So is ``subject_info`` when MODEL runs on its
    own.
    """

    subject_ids: tuple[str, ...]
    subject_info: tuple[Any, ...]
    pipeline_info: tuple[Any, ...]
    design_info: tuple[Any, ...]


def check_stage_combinations(
    stages: Iterable[Stage],
    subject_info: Sequence[Any],
    pipeline_info: Sequence[Any],
) -> None:
    """Reject stage/option combinations that cannot be honoured.

    Raises:
        UsageError: For PREPROC.APPEND with subject-info or PREPROC.IMPORT
            with pipeline-info.
    """
    requested = set(stages)
    if Stage.PREPROC_APPEND in requested and subject_info:
        raise UsageError(
            "Incorrect usage: PREPROC.APPEND cannot be combined with subject_info field; "
            "use PREPROC to import&preprocess a new dataset, or remove subject_info field "
            "to preprocess an already imported dataset"
        )
    if Stage.PREPROC_IMPORT in requested and pipeline_info:
        raise UsageError(
            "Incorrect usage: PREPROC.IMPORT cannot be combined with pipeline_info field; "
            "use PREPROC to import&preprocess a new dataset, or remove pipeline_info field "
            "to import a new dataset"
        )


def expand_single_id(subject_id: str, subject_info: Sequence[Any], donotexpand: bool) -> list[str]:
    """Expand one subject id over several subject-info entries.

    ``donotexpand`` keeps every subject inside one dataset (``id,1``,
    ``id,2`` …); otherwise each subject gets its own dataset below the id
    (``id/<info name>``).
    """
    n = len(subject_info)
    if donotexpand:
        ids = [f"{subject_id},{k}" for k in range(1, n + 1)]
        log.warning("subject_id.expanded", policy="single-project", project=subject_id, subject_info=n)
        return ids

    stem = os.path.splitext(subject_id)[0]
    ids = [f"{stem}/{info_basename(e)}" for e in subject_info]
    log.warning("subject_id.expanded", policy="project-per-subject", ids=ids, subject_info=n)
    return ids


def broadcast(label: str, items: Sequence[Any], n_subjects: int) -> tuple[Any, ...]:
    """Return *items* broadcast to *n_subjects* entries.

    Args:
        label: Human readable name used in the error message.
        items: Zero, one or *n_subjects* entries.
        n_subjects: Number of resolved subject ids.

    Raises:
        UsageError: For any other length.
    """
    if len(items) == 1:
        return tuple(items) * n_subjects
    if len(items) not in (0, n_subjects):
        raise UsageError(
            f"Mismatched number of {label} files "
            f"({n_subjects} subject ids, {len(items)} {label} files)"
        )
    return tuple(items)


def validate_cardinality(
    stages: Sequence[Stage],
    subject_ids: Sequence[str],
    subject_info: Sequence[Any],
    pipeline_info: Sequence[Any],
    design_info: Sequence[Any],
    *,
    donotexpand: bool = False,
) -> ValidatedInputs:
    """Check and align the per-subject input lists.

    Raises:
        UsageError: For invalid stage combinations, an empty id list or any
            count mismatch.  Count messages name both counts.
    """
    check_stage_combinations(stages, subject_info, pipeline_info)
    if not subject_ids:
        raise UsageError("No subject ID entered")

    active = expand_stages(stages)
    ids = list(subject_ids)

    if active & {Stage.PREPROC, Stage.PREPROC_IMPORT}:
        if len(ids) == 1 and len(subject_info) > 1:
            ids = expand_single_id(ids[0], subject_info, donotexpand)
        if len(subject_info) != len(ids):
            raise UsageError(
                "Mismatched number of subjects "
                f"({len(subject_info)} subject information files, {len(ids)} subject ids)"
            )

    pipelines: tuple[Any, ...] = tuple(pipeline_info)
    if active & {Stage.PREPROC, Stage.PREPROC_APPEND}:
        pipelines = broadcast("preprocessing information", pipeline_info, len(ids))

    infos: tuple[Any, ...] = tuple(subject_info)
    designs: tuple[Any, ...] = tuple(design_info)
    if Stage.MODEL in active:
        designs = broadcast("design information", design_info, len(ids))
        if not active & {Stage.PREPROC, Stage.PREPROC_IMPORT}:
            # a design override applies to the whole batch or not at all
            infos = broadcast("subject information", subject_info, len(ids))

    return ValidatedInputs(
        subject_ids=tuple(ids),
        subject_info=infos,
        pipeline_info=pipelines,
        design_info=designs,
    )


def ensure_unique(identifiers: Iterable[str]) -> None:
    """Raise when the same bare subject identifier appears twice.

    Raises:
        UsageError: Naming the repeated identifier.
    """
    seen: set[str] = set()
    for ident in identifiers:
        if ident in seen:
            raise UsageError(f"Found repeated subject_id {ident}. Analysis stopped")
        seen.add(ident)


__all__ = [
    "ValidatedInputs",
    "check_stage_combinations",
    "expand_single_id",
    "broadcast",
    "validate_cardinality",
    "ensure_unique",
]
