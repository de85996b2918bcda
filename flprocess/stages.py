"""
Processing stages understood by the orchestrator.

Stage names are matched case-insensitively and a few historical spellings
(``qacreate``, ``qaplot``, ``qa``) are accepted as aliases.  ``ALL`` is a
shorthand for ``PREPROC`` + ``MODEL`` + ``QA.CREATE``; the expansion is
available through :func:`expand_stages` but callers that need to know whether
``ALL`` itself was requested (the MODEL stage behaves differently) keep the
original set around.
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Iterable

from .errors import UsageError


class Stage(str, Enum):
    """A named phase of the pipeline."""

    PREPROC = "preproc"
    PREPROC_IMPORT = "preproc.import"
    PREPROC_APPEND = "preproc.append"
    MODEL = "model"
    QA_CREATE = "qa.create"
    QA_PLOT = "qa.plot"
    ALL = "all"

    def __str__(self) -> str:  # noqa: D401 - mirrors the CLI spelling
        return self.value.upper()


_ALIASES = {
    "qacreate": Stage.QA_CREATE,
    "qaplot": Stage.QA_PLOT,
    "qa": Stage.QA_PLOT,
}

_ALL_EXPANSION: FrozenSet[Stage] = frozenset({Stage.PREPROC, Stage.MODEL, Stage.QA_CREATE})

# Stages whose single-stage invocation returns immediately from parallel jobs.
IMMEDIATE_RETURN_STAGES: FrozenSet[Stage] = frozenset(
    {Stage.PREPROC, Stage.PREPROC_APPEND, Stage.QA_CREATE}
)


def parse_stage(name: str) -> Stage | None:
    """Return the :class:`Stage` for *name* or ``None`` when it is not a stage."""
    key = name.strip().lower()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return Stage(key)
    except ValueError:
        return None


def is_stage_name(name: str) -> bool:
    """Return ``True`` when *name* spells a stage (or one of its aliases)."""
    return parse_stage(name) is not None


def parse_stages(names: str | Iterable[str]) -> tuple[Stage, ...]:
    """Parse one or several stage names, preserving order and dropping repeats.

    Args:
        names: A single name (comma-separated lists are accepted) or an
            iterable of names.

    Returns:
        Tuple of parsed stages.

    Raises:
        UsageError: When a name is not a stage or nothing was requested.
    """
    if isinstance(names, str):
        names = names.split(",")
    stages: list[Stage] = []
    for raw in names:
        if not raw.strip():
            continue
        stage = parse_stage(raw)
        if stage is None:
            raise UsageError(f"Unknown processing stage '{raw}'")
        if stage not in stages:
            stages.append(stage)
    if not stages:
        raise UsageError("No processing stage requested")
    return tuple(stages)


def expand_stages(stages: Iterable[Stage]) -> FrozenSet[Stage]:
    """Return the requested stages with ``ALL`` replaced by its members."""
    out: set[Stage] = set()
    for stage in stages:
        if stage is Stage.ALL:
            out |= _ALL_EXPANSION
        else:
            out.add(stage)
    return frozenset(out)


__all__ = [
    "Stage",
    "IMMEDIATE_RETURN_STAGES",
    "parse_stage",
    "is_stage_name",
    "parse_stages",
    "expand_stages",
]
