"""
Option normalizer.

Turns the flat ``key, value, key, value, …`` argument list of a processing
run into

* a typed :class:`~flprocess.config.schema.ProcessOptions` record holding
  every recognised option, and
* the ordered pass-through list of everything else, extended with the
  backend-facing flags derived from ``parallel``, ``localcopy`` and the QA
  options.

An odd-length list carries an implicit leading ``subject_id`` value, so
``("sub-01", "overwrite", "0")`` reads as
``subject_id="sub-01", overwrite=False``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import structlog
from pydantic import ValidationError

from .config.schema import OPTION_FIELDS, ProcessOptions
from .errors import OptionError
from .stages import IMMEDIATE_RETURN_STAGES, Stage

log = structlog.get_logger()

OptionPairs = tuple[tuple[str, Any], ...]


@dataclass(frozen=True)
class NormalizedOptions:
    """Result of :func:`normalize_options`.

    Attributes:
        options: Typed view of the recognised options.
        passthrough: Ordered ``(key, value)`` pairs forwarded to the backend.
    """

    options: ProcessOptions
    passthrough: OptionPairs


def _is_empty(value: Any) -> bool:
    """Return ``True`` for ``None`` and empty strings/sequences."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def pair_arguments(args: Sequence[Any]) -> list[tuple[str, Any]]:
    """Group a flat argument list into ``(key, value)`` pairs.

    Raises:
        OptionError: When an option name is not a string.
    """
    items = list(args)
    if len(items) % 2:
        items.insert(0, "subject_id")
    pairs: list[tuple[str, Any]] = []
    for i in range(0, len(items), 2):
        key = items[i]
        if not isinstance(key, str) or not key.strip():
            raise OptionError(f"Option name at position {i + 1} must be a non-empty string, got {key!r}")
        pairs.append((key, items[i + 1]))
    return pairs


def normalize_options(
    stages: Sequence[Stage],
    args: Sequence[Any],
    *,
    defaults: Mapping[str, Any] | None = None,
) -> NormalizedOptions:
    """Parse *args* into typed options plus the pass-through bag.

    Args:
        stages: Stages requested for this run; used for the
            ``immediate_return`` default.
        args: Flat option list (see module doc-string).
        defaults: Option defaults from the settings file; explicit options
            always win.

    Returns:
        :class:`NormalizedOptions`.

    Raises:
        OptionError: On duplicate recognised options or values that cannot
            be coerced to their declared type.
    """
    typed: dict[str, Any] = {}
    rest: list[tuple[str, Any]] = []

    for key, value in pair_arguments(args):
        field = OPTION_FIELDS.get(key.lower())
        if field is None:
            rest.append((key, value))
            continue
        if field in typed:
            raise OptionError(f"Option '{key}' given more than once")
        typed[field] = value

    given = {k.lower() for k, _ in rest}
    for key, value in (defaults or {}).items():
        field = OPTION_FIELDS.get(key)
        if field is not None:
            typed.setdefault(field, value)
        elif key not in given:
            rest.append((key, value))

    try:
        opts = ProcessOptions(**typed)
    except ValidationError as exc:
        raise OptionError(f"Invalid option value – {exc}") from exc

    if opts.immediate_return is None:
        single = len(stages) == 1 and stages[0] in IMMEDIATE_RETURN_STAGES
        opts = opts.model_copy(update={"immediate_return": single})

    forwarded = list(rest)
    if opts.parallel:
        forwarded += [("parallel.N", 1), ("parallel.immediatereturn", opts.immediate_return)]
    if opts.localcopy:
        forwarded += [("localcopy", 1), ("localcopy_reduce", 1)]
    forwarded.append(("qa_plots", opts.qa_plots))
    if not _is_empty(opts.qa_plist):
        forwarded.append(("qa_plist", opts.qa_plist))
    if not _is_empty(opts.qa_set):
        forwarded.append(("qa_set", opts.qa_set))

    log.debug("options.normalized", typed=sorted(typed), passthrough=[k for k, _ in forwarded])
    return NormalizedOptions(options=opts, passthrough=tuple(forwarded))


__all__ = ["NormalizedOptions", "OptionPairs", "normalize_options", "pair_arguments"]
