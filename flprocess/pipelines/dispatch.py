"""
Stage dispatcher.

Runs the requested stages for every resolved subject, sequentially and in
input order.  Per subject the stages always run as

    PREPROC/ALL → PREPROC.IMPORT → PREPROC.APPEND → MODEL/ALL → QA.CREATE/ALL → QA.PLOT

whatever order the caller listed them in.  All numerical work is delegated
to the :class:`~flprocess.backends.base.ProcessingBackend`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Literal, Optional, Sequence

import structlog

from ..backends.base import Options, ProcessingBackend
from ..errors import FlProcessError, UsageError
from ..stages import Stage, expand_stages
from .paths import DATASET_SUFFIX
from .types import SubjectRecord

log = structlog.get_logger()

# Pass-through keys understood by the QA step; everything else is dropped.
QA_OPTION_KEYS = frozenset(
    {
        "subjects",
        "qa_plist",
        "qa_set",
        "parallel.N",
        "parallel.immediatereturn",
        "parallel.profile",
        "qa_parallel",
        "qa_profile",
    }
)

MODEL_DEFAULTS = {"model_session": 0}

OnError = Literal["abort", "skip"]


class StageDispatcher:
    """Drive one batch through the backend.

    Args:
        backend: Processing backend receiving every stage call.
        overwrite: When ``False`` stages whose dataset file exists are
            skipped.  QA.PLOT is never skipped.
        localcopy: Forwarded to the dataset-import step.
        on_error: ``abort`` re-raises the first per-subject failure,
            ``skip`` logs it and moves on to the next subject.
    """

    def __init__(
        self,
        backend: ProcessingBackend,
        *,
        overwrite: bool = True,
        localcopy: bool = True,
        on_error: OnError = "abort",
    ) -> None:
        self.backend = backend
        self.overwrite = overwrite
        self.localcopy = localcopy
        self.on_error = on_error

    # ------------------------------------------------------------------
    def run(
        self,
        stages: Iterable[Stage],
        records: Sequence[SubjectRecord],
        passthrough: Options = (),
    ) -> list[Optional[str]]:
        """Run *stages* for each record and return one output per subject.

        Returns:
            Output slots in record order; ``None`` where no stage produced
            anything (skipped, QA.PLOT only, or failed under ``skip``).
        """
        requested = frozenset(stages)
        outputs: list[Optional[str]] = [None] * len(records)

        for n, rec in enumerate(records):
            options = self._subject_options(rec, passthrough)
            try:
                self._run_subject(n, rec, requested, options, outputs)
            except (FlProcessError, OSError) as exc:
                if self.on_error != "skip":
                    raise
                log.error("subject.failed", subject=rec.label, dataset=str(rec.dataset_path), error=str(exc))
        return outputs

    # ------------------------------------------------------------------
    @staticmethod
    def _subject_options(rec: SubjectRecord, passthrough: Options) -> tuple[tuple[str, Any], ...]:
        """Return the pass-through pairs for *rec* (plus ``subjects`` if sub-indexed)."""
        opts = tuple(passthrough)
        if rec.dataset_subindex is not None:
            opts += (("subjects", rec.dataset_subindex),)
        return opts

    def _skip(self, stage: Stage, rec: SubjectRecord) -> bool:
        """Return ``True`` (and log) when *stage* must not touch an existing dataset."""
        if self.overwrite or not rec.dataset_path.exists():
            return False
        log.warning("stage.skipped", stage=str(stage), subject=rec.label, dataset=str(rec.dataset_path))
        return True

    def _run_subject(
        self,
        n: int,
        rec: SubjectRecord,
        requested: frozenset[Stage],
        options: tuple[tuple[str, Any], ...],
        outputs: list[Optional[str]],
    ) -> None:
        active = expand_stages(requested)
        log.info("subject.start", subject=rec.label, stages=sorted(str(s) for s in active))

        if Stage.PREPROC in active and not self._skip(Stage.PREPROC, rec):
            self._preproc(rec, options)
            outputs[n] = str(rec.dataset_path)

        if Stage.PREPROC_IMPORT in active and not self._skip(Stage.PREPROC_IMPORT, rec):
            outputs[n] = self.backend.run_import(rec.dataset_path, subject_info=rec.subject_info, options=options)

        if Stage.PREPROC_APPEND in active and not self._skip(Stage.PREPROC_APPEND, rec):
            self.backend.run_preproc(rec.dataset_path, pipeline=rec.pipeline_info, options=options)
            outputs[n] = str(rec.dataset_path)

        if Stage.MODEL in active and not self._skip(Stage.MODEL, rec):
            self._model(rec, options, from_dataset=Stage.ALL in requested or rec.subject_info is None)
            outputs[n] = str(rec.dataset_path)

        if Stage.QA_CREATE in active and not self._skip(Stage.QA_CREATE, rec):
            qa_options = tuple((k, v) for k, v in options if k in QA_OPTION_KEYS)
            outputs[n] = self.backend.run_qa(rec.dataset_path, options=qa_options)

        if Stage.QA_PLOT in active:
            self._qa_plot(rec)

    # ----------------------------------------------------------- stages ---
    def _preproc(self, rec: SubjectRecord, options: Options) -> None:
        """Import+preprocess, or copy an existing dataset and append to it."""
        source = rec.subject_info
        if isinstance(source, str) and source.endswith(DATASET_SUFFIX):
            log.info("preproc.from_dataset", subject=rec.label, source=source)
            self.backend.import_dataset(source, rec.dataset_path, localcopy=self.localcopy)
            self.backend.run_preproc(rec.dataset_path, pipeline=rec.pipeline_info, options=options)
            return
        self.backend.run_preproc(
            rec.dataset_path,
            subject_info=source,
            pipeline=rec.pipeline_info,
            options=options,
        )

    def _model(self, rec: SubjectRecord, options: Options, *, from_dataset: bool) -> None:
        """Run first-level modelling with the stored or the overriding design.

        Raises:
            UsageError: When the stored design holds neither ``design`` nor
                ``files``.
        """
        if from_dataset:
            design: Any = dict(self.backend.get_design_info(rec.dataset_path))
            if "design" not in design and "files" not in design:
                raise UsageError(f"design information not found in original dataset {rec.dataset_path}")
        else:
            log.warning(
                "model.design_override",
                subject=rec.label,
                msg="disregarding original dataset design info",
                source=rec.subject_info,
            )
            design = rec.subject_info

        self.backend.run_model(
            rec.dataset_path,
            defaults=dict(MODEL_DEFAULTS),
            design=design,
            pipeline=rec.design_info,
            options=options,
        )

    def _qa_plot(self, rec: SubjectRecord) -> None:
        """Open the QA viewer on the dataset or, failing that, its project folder."""
        if rec.dataset_path.exists():
            self.backend.open_qa_viewer(dataset=rec.dataset_path)
        elif Path(rec.project_dir).is_dir():
            self.backend.open_qa_viewer(folder=rec.project_dir)
        else:
            log.info("qa_plot.nothing_to_show", subject=rec.label)


__all__ = ["StageDispatcher", "QA_OPTION_KEYS", "MODEL_DEFAULTS"]
