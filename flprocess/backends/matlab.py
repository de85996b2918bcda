"""MATLAB batch back-end.

Each call renders a short MATLAB script that invokes the evlab17/CONN
toolbox functions and runs it through ``matlab -batch``.  Python values are
encoded as MATLAB literals by :func:`to_matlab`.  Values travel back on
stdout lines prefixed with the configured marker (``FLPROCESS_OUTPUT:`` by
default); structured values are sent as JSON via ``jsonencode``.
"""

from __future__ import annotations

import json
import math
import subprocess
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import structlog

from ..config.schema import BackendSettings
from ..errors import BackendError
from .base import Options, ProcessingBackend

log = structlog.get_logger()

JOB_ACTIONS = {
    "report": "conn_jobmanager report;",
    "gui": "conn_jobmanager;",
    "cancel": "conn_jobmanager cancel;",
    "delete": "conn_jobmanager delete;",
}


def to_matlab(value: Any) -> str:
    """Return a MATLAB literal for *value*.

    Strings become char arrays, numeric lists become row vectors, other
    sequences become cell arrays and mappings become scalar structs.
    """
    if value is None:
        return "[]"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Inf" if value > 0 else "-Inf"
        return repr(value)
    if isinstance(value, Path):
        value = str(value)
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    if isinstance(value, Mapping):
        if not value:
            return "struct()"
        # Cell-wrapped values keep struct() from building a struct array.
        fields = ",".join(f"{to_matlab(str(k))},{{{to_matlab(v)}}}" for k, v in value.items())
        return f"struct({fields})"
    if isinstance(value, (list, tuple)):
        if value and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value):
            return "[" + " ".join(to_matlab(v) for v in value) + "]"
        return "{" + ",".join(to_matlab(v) for v in value) + "}"
    raise TypeError(f"Cannot encode {type(value).__name__} as a MATLAB value")


def option_args(options: Options) -> list[str]:
    """Encode ``(key, value)`` pairs as a flat MATLAB argument list."""
    args: list[str] = []
    for key, value in options:
        args += [to_matlab(key), to_matlab(value)]
    return args


def call(function: str, *args: str) -> str:
    """Return ``function(arg1,arg2,…);``."""
    return f"{function}({','.join(args)});"


class MatlabBackend(ProcessingBackend):
    """Run toolbox calls in a MATLAB batch process."""

    def __init__(self, settings: BackendSettings | None = None) -> None:
        """Configure the back-end.

        Args:
            settings: Command line, MATLAB path entries and output marker.
        """
        self.settings = settings or BackendSettings()

    # ------------------------------------------------------------------
    def _script(self, statements: Sequence[str]) -> str:
        """Prefix *statements* with the configured ``addpath`` calls."""
        prefix = [call("addpath", to_matlab(p)) for p in self.settings.startup]
        return " ".join([*prefix, *statements])

    def _emit(self, expression: str) -> str:
        """Return a statement printing *expression* after the marker."""
        return f"fprintf('%s%s\\n',{to_matlab(self.settings.marker)},{expression});"

    def _execute(self, statements: Sequence[str], *, interactive: bool = False) -> list[str]:
        """Run *statements* and return the marker-prefixed stdout payloads.

        Raises:
            BackendError: If MATLAB cannot be started or exits non-zero.
        """
        script = self._script(statements)
        command = self.settings.interactive_command if interactive else self.settings.command
        cmd = [*command, script]
        log.info("matlab.run", script=script, interactive=interactive)
        try:
            if interactive:
                subprocess.run(cmd, check=True)
                return []
            result = subprocess.run(cmd, check=True, capture_output=True, text=True)
        except FileNotFoundError as exc:
            log.error("matlab.missing", command=command[0])
            raise BackendError(f"MATLAB executable not found: {command[0]}") from exc
        except subprocess.CalledProcessError as exc:
            tail = (exc.stderr or exc.stdout or "").strip().splitlines()[-5:]
            log.error("matlab.failed", returncode=exc.returncode, stderr=tail)
            raise BackendError(
                f"MATLAB exited with status {exc.returncode}" + (": " + " | ".join(tail) if tail else "")
            ) from exc

        marker = self.settings.marker
        return [
            line[len(marker):]
            for line in (result.stdout or "").splitlines()
            if line.startswith(marker)
        ]

    @staticmethod
    def _first(payloads: list[str]) -> Optional[str]:
        """Return the first non-empty payload or ``None``."""
        for p in payloads:
            if p.strip():
                return p.strip()
        return None

    # ----------------------------------------------------------- stages ---
    def run_preproc(
        self,
        dataset: Path,
        *,
        subject_info: Any = None,
        pipeline: Optional[str] = None,
        options: Options = (),
    ) -> None:
        """Call ``evlab17_run_preproc`` (import+preprocess or append)."""
        args = []
        if subject_info is not None:
            args.append(to_matlab(subject_info))
        if pipeline is not None:
            args.append(to_matlab(pipeline))
        args += ["[]", *option_args(options), to_matlab("dataset"), to_matlab(dataset)]
        self._execute([call("evlab17_run_preproc", *args)])

    def run_import(self, dataset: Path, *, subject_info: Any, options: Options = ()) -> Optional[str]:
        """Call ``evlab17_run_preproc`` without a pipeline and report its output."""
        args = [to_matlab(subject_info), "[]", *option_args(options), to_matlab("dataset"), to_matlab(dataset)]
        payloads = self._execute([
            "fl_out=" + call("evlab17_run_preproc", *args),
            self._emit("char(fl_out)"),
        ])
        return self._first(payloads)

    def import_dataset(self, source: str, dataset: Path, *, localcopy: bool) -> None:
        """Load *source*, save it as *dataset* and refresh the import."""
        dataset.parent.mkdir(parents=True, exist_ok=True)
        statements = [
            call("evlab17_module", to_matlab("load"), to_matlab(source)),
            call("evlab17_module", to_matlab("save"), to_matlab(dataset)),
            call("evlab17_module", to_matlab("update")),
        ]
        if localcopy:
            statements += [call("conn_importvol2bids", "true"), "conn save;"]
        self._execute(statements)

    def get_design_info(self, dataset: Path) -> Mapping[str, Any]:
        """Return ``evlab17_module('getinfo','design')`` decoded from JSON."""
        payloads = self._execute([
            call("evlab17_module", to_matlab("load"), to_matlab(dataset)),
            "fl_out=" + call("evlab17_module", to_matlab("getinfo"), to_matlab("design")),
            self._emit("jsonencode(fl_out)"),
        ])
        raw = self._first(payloads)
        if raw is None:
            return {}
        try:
            info = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise BackendError(f"Unreadable design information for {dataset}: {exc}") from exc
        return info if isinstance(info, dict) else {}

    def run_model(
        self,
        dataset: Path,
        *,
        defaults: Mapping[str, Any],
        design: Any,
        pipeline: Optional[str] = None,
        options: Options = (),
    ) -> None:
        """Call ``evlab17_run_model``."""
        args = [to_matlab(dict(defaults)), to_matlab(design)]
        if pipeline is not None:
            args.append(to_matlab(pipeline))
        args += ["[]", *option_args(options), to_matlab("dataset"), to_matlab(dataset)]
        self._execute([call("evlab17_run_model", *args)])

    def run_qa(self, dataset: Path, *, options: Options = ()) -> Optional[str]:
        """Call ``evlab17_run_qa`` and report its output."""
        args = ["[]", to_matlab("dataset"), to_matlab(dataset), *option_args(options)]
        payloads = self._execute([
            "fl_out=" + call("evlab17_run_qa", *args),
            self._emit("char(fl_out)"),
        ])
        return self._first(payloads)

    def open_qa_viewer(self, *, dataset: Optional[Path] = None, folder: Optional[Path] = None) -> None:
        """Open ``conn_qaplotsexplore`` on a dataset or a folder."""
        if dataset is not None:
            statements = [call("evlab17_module", to_matlab("load"), to_matlab(dataset)), "conn_qaplotsexplore;"]
        elif folder is not None:
            statements = [call("conn_qaplotsexplore", to_matlab(folder))]
        else:
            statements = ["conn_qaplotsexplore;"]
        self._execute(statements, interactive=True)

    # -------------------------------------------------------- utilities ---
    def open_dataset(self, dataset: Path) -> None:
        """Load *dataset* and show it in the CONN setup GUI."""
        self._execute(
            [
                call("evlab17_module", to_matlab("load"), to_matlab(dataset)),
                "conn;",
                call("conn", to_matlab("load"), to_matlab(dataset)),
                "conn gui_setup;",
            ],
            interactive=True,
        )

    def model_plots(self, *args: Any) -> None:
        """Call ``evlab17_modelplots``."""
        self._execute([call("evlab17_modelplots", *(to_matlab(a) for a in args))], interactive=True)

    def qa_plots_explore(self, *args: Any) -> None:
        """Call ``conn_qaplotsexplore`` over the subject-folder layout."""
        encoded = [to_matlab(a) for a in args] + [to_matlab("flfolders")]
        self._execute([call("conn_qaplotsexplore", *encoded)], interactive=True)

    def job_manager(self, dataset: Path, action: str) -> None:
        """Run ``conn_jobmanager`` for the jobs of *dataset*."""
        if action not in JOB_ACTIONS:
            raise ValueError(f"Unknown job action '{action}'")
        self._execute(
            [call("evlab17_module", to_matlab("load"), to_matlab(dataset)), JOB_ACTIONS[action]],
            interactive=action == "gui",
        )


__all__ = ["MatlabBackend", "to_matlab", "option_args", "call", "JOB_ACTIONS"]
