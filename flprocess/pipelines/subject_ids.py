"""
Subject-id derivation from subject-info file names.

When no subject id is given, or the id is a template, one id is produced per
subject-info entry from the entry's base name (no folder, no extension):

``"sub-%s"``
    ``%s`` is replaced by the base name.
``"Exp/*"``
    The path component holding ``*`` is replaced by the base name.
``"Exp/sub-%04d"``
    The first run of digits in the base name is formatted into the template.
empty
    The base name itself.
"""

from __future__ import annotations

import os
import re
from typing import Any, Sequence

import structlog

from ..errors import UsageError

log = structlog.get_logger()

_STAR_RUN = re.compile(r"[^/\\]*\*[^/\\]*")
_NUMERIC_FIELD = re.compile(r"%0?\d*d")
_DIGITS = re.compile(r"\d+")


def is_template(value: Any) -> bool:
    """Return ``True`` for id strings that contain ``%`` or ``*``."""
    return isinstance(value, str) and ("%" in value or "*" in value)


def info_basename(entry: Any) -> str:
    """Return the base name of a subject-info entry.

    Raises:
        UsageError: For in-memory (mapping) entries, which carry no name.
    """
    if not isinstance(entry, str):
        raise UsageError("Cannot derive a subject id from in-memory subject information")
    return os.path.splitext(os.path.basename(entry))[0]


def _format_number(template: str, name: str) -> str:
    """Format the first digit run of *name* into the ``%d`` field of *template*."""
    digits = _DIGITS.search(name)
    if digits is None:
        raise UsageError(f"No numeric part in '{name}' to fill subject id template '{template}'")
    field = _NUMERIC_FIELD.search(template)
    assert field is not None
    return template[: field.start()] + (field.group(0) % int(digits.group(0))) + template[field.end():]


def derive_subject_ids(template: str | None, subject_info: Sequence[Any]) -> list[str]:
    """Return one subject id per subject-info entry.

    Args:
        template: Empty/``None`` or a template string (see module doc-string).
        subject_info: Subject-info entries, in order.

    Returns:
        Derived ids, order-preserving.

    Raises:
        UsageError: Without subject-info entries, or when a ``%d`` template
            meets a base name that holds no digits.
    """
    if not subject_info:
        raise UsageError("No subject data information files selected")
    names = [info_basename(e) for e in subject_info]
    template = template or ""

    if "%s" in template:
        ids = [template.replace("%s", n, 1) for n in names]
    elif "*" in template:
        ids = [_STAR_RUN.sub(lambda _m, n=n: n, template) for n in names]
    elif _NUMERIC_FIELD.search(template):
        ids = [_format_number(template, n) for n in names]
    else:
        ids = names

    log.info("subject_id.derived", template=template or None, ids=ids)
    return ids


__all__ = ["is_template", "info_basename", "derive_subject_ids"]
