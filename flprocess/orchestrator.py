"""
Batch orchestrator: the invocation surface of the package.

``Orchestrator.process(steps, *args)`` either runs processing stages

    orch.process("preproc,model", "subject_info", "/data/Sub*.cfg",
                 "pipeline_info", "pipeline_DefaultMNI.cfg")

or, when *steps* is a single non-stage name, a utility command from the
:class:`~flprocess.registry.CommandRegistry`

    orch.process("report", "Exp/sub-01")
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

import structlog

from .backends.base import ProcessingBackend
from .config.root import RootFolder, root_folder as _shared_root
from .config.schema import Settings
from .options import NormalizedOptions, normalize_options
from .pipelines.dispatch import OnError, StageDispatcher
from .pipelines.paths import SubjectLocation, locate_subject
from .pipelines.resolve import ResolutionContext, resolve_subjects
from .pipelines.types import SubjectRecord
from .registry import build_default_registry
from .stages import Stage, is_stage_name, parse_stages

log = structlog.get_logger()


class Orchestrator:
    """Resolve subjects and drive the stage dispatcher.

    Args:
        backend: Processing backend receiving every stage call.
        root: Root-folder service; the process-wide instance by default.
        settings: Validated settings (option defaults, library folder,
            failure policy).  Built-in defaults when omitted.
        start_dir: Invocation directory for ``./`` ids and relative globs.
            The current directory at call time when omitted.
        on_error: Overrides ``settings.on_error``.
    """

    def __init__(
        self,
        backend: ProcessingBackend,
        *,
        root: Optional[RootFolder] = None,
        settings: Optional[Settings] = None,
        start_dir: Optional[str | Path] = None,
        on_error: Optional[OnError] = None,
    ) -> None:
        self.backend = backend
        self.settings = settings or Settings()
        self.root_folder = root if root is not None else _shared_root
        if self.settings.root_folder and not self.root_folder.initialised:
            self.root_folder.configure_default(self.settings.root_folder)
        self.start_dir = Path(start_dir) if start_dir else None
        self.on_error: OnError = on_error or self.settings.on_error
        self.registry = build_default_registry(self)

    # ------------------------------------------------------------------
    @property
    def invocation_dir(self) -> Path:
        """Directory used for ``./`` prefixes and relative globs."""
        return self.start_dir or Path.cwd()

    def locate(self, subject_id: str) -> SubjectLocation:
        """Place *subject_id* below the current root folder."""
        return locate_subject(subject_id, self.invocation_dir, self.root_folder.get())

    def resolve(
        self,
        stages: str | Iterable[str | Stage],
        args: Sequence[Any],
    ) -> tuple[NormalizedOptions, list[SubjectRecord]]:
        """Normalize *args* and resolve the subject records without running anything."""
        parsed = parse_stages(_stage_names(stages))
        normalized = normalize_options(parsed, args, defaults=self.settings.defaults)
        root = normalized.options.root_folder or self.root_folder.get()
        ctx = ResolutionContext(
            start_dir=self.invocation_dir,
            root=Path(root),
            library_dir=self.settings.library_dir,
        )
        return normalized, resolve_subjects(parsed, normalized.options, ctx)

    def run(self, stages: str | Iterable[str | Stage], *args: Any) -> list[Optional[str]]:
        """Run *stages* for every resolved subject.

        Returns:
            One output per subject, in input order (``None`` when nothing
            was produced).

        Raises:
            FlProcessError: On validation failures (before any stage runs)
                and, under the ``abort`` policy, on the first backend error.
        """
        parsed = parse_stages(_stage_names(stages))
        normalized, records = self.resolve(parsed, args)
        opts = normalized.options
        dispatcher = StageDispatcher(
            self.backend,
            overwrite=opts.overwrite,
            localcopy=opts.localcopy,
            on_error=self.on_error,
        )
        log.info("batch.start", stages=[str(s) for s in parsed], subjects=len(records))
        outputs = dispatcher.run(parsed, records, normalized.passthrough)
        log.info("batch.done", produced=sum(o is not None for o in outputs), subjects=len(records))
        return outputs

    @staticmethod
    def utility_name(steps: str | Iterable[str | Stage]) -> Optional[str]:
        """Return the utility keyword *steps* names, or ``None`` for stages.

        Utility arguments are positional and are passed on unpaired.
        """
        names = _stage_names(steps)
        if len(names) == 1 and not is_stage_name(names[0]):
            return names[0].strip()
        return None

    def process(self, steps: str | Iterable[str | Stage], *args: Any) -> Any:
        """Run stages, or a utility command when *steps* names one."""
        command = self.utility_name(steps)
        if command is not None:
            return self.registry.dispatch(command, *args)
        return self.run(_stage_names(steps), *args)


def _stage_names(steps: str | Iterable[str | Stage]) -> list[str]:
    """Flatten *steps* into names; comma-separated strings are split."""
    if isinstance(steps, str):
        steps = [steps]
    names: list[str] = []
    for step in steps:
        if isinstance(step, Stage):
            names.append(step.value)
        else:
            names += [s for s in str(step).split(",") if s.strip()]
    return names


__all__ = ["Orchestrator"]
