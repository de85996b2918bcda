"""Back-end that records calls instead of running them.

Used by ``flprocess-cli run --dry-run`` to preview what a batch would do, and
by the test-suite to observe the dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog

from .base import Options, ProcessingBackend

log = structlog.get_logger()


@dataclass
class BackendCall:
    """One recorded back-end call."""

    method: str
    dataset: Optional[Path] = None
    kwargs: dict[str, Any] = field(default_factory=dict)


class DryRunBackend(ProcessingBackend):
    """Log every call and report the dataset path as the stage output."""

    def __init__(self, design_info: Mapping[str, Any] | None = None) -> None:
        """Prepare the call log.

        Args:
            design_info: Value returned by :meth:`get_design_info`.
        """
        self.calls: list[BackendCall] = []
        self.design_info = dict(design_info) if design_info is not None else {"design": {}}

    def _record(self, method: str, dataset: Optional[Path] = None, **kwargs: Any) -> None:
        """Append a :class:`BackendCall` and log it."""
        self.calls.append(BackendCall(method, dataset, kwargs))
        log.info("dry_run.call", method=method, dataset=str(dataset) if dataset else None)

    def methods(self) -> list[str]:
        """Return the recorded method names in call order."""
        return [c.method for c in self.calls]

    # ----------------------------------------------------------- stages ---
    def run_preproc(self, dataset, *, subject_info=None, pipeline=None, options: Options = ()) -> None:
        self._record("run_preproc", dataset, subject_info=subject_info, pipeline=pipeline, options=tuple(options))

    def run_import(self, dataset, *, subject_info, options: Options = ()) -> Optional[str]:
        self._record("run_import", dataset, subject_info=subject_info, options=tuple(options))
        return str(dataset)

    def import_dataset(self, source, dataset, *, localcopy) -> None:
        self._record("import_dataset", dataset, source=source, localcopy=localcopy)

    def get_design_info(self, dataset) -> Mapping[str, Any]:
        self._record("get_design_info", dataset)
        return dict(self.design_info)

    def run_model(self, dataset, *, defaults, design, pipeline=None, options: Options = ()) -> None:
        self._record(
            "run_model",
            dataset,
            defaults=dict(defaults),
            design=design,
            pipeline=pipeline,
            options=tuple(options),
        )

    def run_qa(self, dataset, *, options: Options = ()) -> Optional[str]:
        self._record("run_qa", dataset, options=tuple(options))
        return str(dataset)

    def open_qa_viewer(self, *, dataset=None, folder=None) -> None:
        self._record("open_qa_viewer", dataset, folder=folder)

    # -------------------------------------------------------- utilities ---
    def open_dataset(self, dataset) -> None:
        self._record("open_dataset", dataset)

    def model_plots(self, *args) -> None:
        self._record("model_plots", args=args)

    def qa_plots_explore(self, *args) -> None:
        self._record("qa_plots_explore", args=args)

    def job_manager(self, dataset, action) -> None:
        self._record("job_manager", dataset, action=action)


__all__ = ["DryRunBackend", "BackendCall"]
