"""Processing back-end interface.

The orchestrator never imports, preprocesses or models data itself; every
stage is forwarded to a :class:`ProcessingBackend`.  The interface is small
so that new back-ends (a different toolbox, a remote service) can be added
without touching the dispatcher.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

Options = Sequence[tuple[str, Any]]


class ProcessingBackend(ABC):
    """Abstract processing back-end.

    Methods that take *options* receive the ordered pass-through pairs; the
    back-end appends ``dataset=<path>`` itself.  Failures are reported by
    raising, typically :class:`flprocess.errors.BackendError`.
    """

    # ----------------------------------------------------------- stages ---
    @abstractmethod
    def run_preproc(
        self,
        dataset: Path,
        *,
        subject_info: Any = None,
        pipeline: Optional[str] = None,
        options: Options = (),
    ) -> None:
        """Import+preprocess (*subject_info* given) or append preprocessing."""
        raise NotImplementedError

    @abstractmethod
    def run_import(self, dataset: Path, *, subject_info: Any, options: Options = ()) -> Optional[str]:
        """Import a subject without preprocessing; return the written file."""
        raise NotImplementedError

    @abstractmethod
    def import_dataset(self, source: str, dataset: Path, *, localcopy: bool) -> None:
        """Copy an existing dataset file to *dataset* and refresh it."""
        raise NotImplementedError

    @abstractmethod
    def get_design_info(self, dataset: Path) -> Mapping[str, Any]:
        """Return the design metadata stored in *dataset*."""
        raise NotImplementedError

    @abstractmethod
    def run_model(
        self,
        dataset: Path,
        *,
        defaults: Mapping[str, Any],
        design: Any,
        pipeline: Optional[str] = None,
        options: Options = (),
    ) -> None:
        """Run first-level modelling with *design*; *defaults* come first."""
        raise NotImplementedError

    @abstractmethod
    def run_qa(self, dataset: Path, *, options: Options = ()) -> Optional[str]:
        """Create QA plots; return the output reported by the toolbox."""
        raise NotImplementedError

    @abstractmethod
    def open_qa_viewer(self, *, dataset: Optional[Path] = None, folder: Optional[Path] = None) -> None:
        """Open the QA viewer on a dataset file or a project folder."""
        raise NotImplementedError

    # -------------------------------------------------------- utilities ---
    @abstractmethod
    def open_dataset(self, dataset: Path) -> None:
        """Display *dataset* in the toolbox GUI."""
        raise NotImplementedError

    @abstractmethod
    def model_plots(self, *args: Any) -> None:
        """Display first-level contrasts."""
        raise NotImplementedError

    @abstractmethod
    def qa_plots_explore(self, *args: Any) -> None:
        """Open the QA explorer across subject folders."""
        raise NotImplementedError

    @abstractmethod
    def job_manager(self, dataset: Path, action: str) -> None:
        """Report on, cancel or delete the parallel jobs of *dataset*.

        Args:
            dataset: Dataset whose jobs are addressed.
            action: One of ``report``, ``gui``, ``cancel``, ``delete``.
        """
        raise NotImplementedError


__all__ = ["ProcessingBackend", "Options"]
