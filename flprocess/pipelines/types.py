"""
Typed, immutable value objects passed from resolution to dispatch.

Every class inherits from :class:`pydantic.BaseModel` with ``frozen=True``
so a resolved batch cannot be altered once the dispatcher starts iterating
over it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel


class SubjectRecord(BaseModel, frozen=True):
    """The resolved unit of work for one subject.

    Attributes
    ----------
    subject_id
        Bare identifier with any ``,<N>`` suffix removed.
    dataset_subindex
        ``N`` from a ``,<N>`` suffix: the N-th subject inside a
        multi-subject dataset file.  *None* for single-subject datasets.
    working_dir
        Absolute folder that holds the dataset file.
    dataset_path
        ``working_dir/<subject_id>.mat``.
    pipeline_info
        Resolved preprocessing pipeline file, if any.
    subject_info
        Resolved subject-info file or an in-memory mapping, if any.
    design_info
        First-level design file, if any.
    """

    subject_id: str
    dataset_subindex: Optional[int] = None
    working_dir: Path
    dataset_path: Path
    pipeline_info: Optional[str] = None
    subject_info: Optional[Union[str, Dict[str, Any]]] = None
    design_info: Optional[str] = None

    @property
    def project_dir(self) -> Path:
        """Folder created next to the dataset file by the backend."""
        return self.working_dir / self.subject_id

    @property
    def label(self) -> str:
        """Identifier including the sub-index, as used in log messages."""
        if self.dataset_subindex is None:
            return self.subject_id
        return f"{self.subject_id},{self.dataset_subindex}"


__all__ = ["SubjectRecord"]
