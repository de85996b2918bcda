"""
Pydantic models for the settings file and the per-invocation option list.

Two documents are modelled here:

* :class:`Settings` – the validated ``flprocess.yaml`` settings file (root
  folder, shared config library, failure policy, backend command).
* :class:`ProcessOptions` – the typed view of the flat ``key, value, …``
  option list handed to a processing run.  Every recognised option has a
  declared type so textual values such as ``"0"`` or ``"true"`` are coerced
  once, at parse time, instead of being re-interpreted at each use.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --------------------------------------------------------------------------- #
# 1.  Per-invocation options                                                  #
# --------------------------------------------------------------------------- #

SubjectInfoEntry = Union[str, Dict[str, Any]]

_NUMBER_SPLIT = re.compile(r"[\s,;]+")


def _parse_number(token: str) -> int | float:
    """Return *token* as ``int`` when possible, otherwise as ``float``."""
    try:
        return int(token)
    except ValueError:
        return float(token)


class ProcessOptions(BaseModel):
    """Typed option record produced by the option normalizer.

    Attributes:
        subject_id: Identifier string, glob/template string or list of ids.
        subject_info: Subject-info file, glob, mapping or list of those.
        pipeline_info: Preprocessing pipeline file(s).
        design_info: First-level design file(s).
        root_folder: Per-invocation override of the root folder.
        overwrite: Re-run stages even when the dataset file already exists.
        parallel: Tag backend calls for cluster execution.
        qa_plist: QA plots to create (numbers or labels).
        qa_set: Functional dataset label/index for QA plots.
        qa_plots: QA display flag forwarded to the backend.
        localcopy: Ask the backend to work on a local copy of the data.
        immediate_return: Return right after submitting parallel jobs.
            ``None`` until the normalizer derives the stage-dependent default.
        donotexpand: One-to-many expansion policy (``,k`` vs ``/<name>``).
    """

    model_config = ConfigDict(extra="forbid")

    subject_id: Union[str, List[str]] = Field(default_factory=list)
    subject_info: Union[SubjectInfoEntry, List[SubjectInfoEntry]] = Field(default_factory=list)
    pipeline_info: Union[str, List[str]] = Field(default_factory=list)
    design_info: Union[str, List[str]] = Field(default_factory=list)
    root_folder: Optional[Path] = None

    overwrite: bool = True
    parallel: bool = False
    qa_plist: Any = None
    qa_set: Any = None
    qa_plots: bool = False
    localcopy: bool = True
    immediate_return: Optional[bool] = None
    donotexpand: bool = False

    @field_validator("root_folder", mode="before")
    @classmethod
    def _empty_root_is_none(cls, value):
        """Treat an empty root folder as *not given*."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator(
        "overwrite", "parallel", "qa_plots", "localcopy", "immediate_return", "donotexpand", mode="before"
    )
    @classmethod
    def _numeric_flag(cls, value):
        """Any number (or numeric text) is a flag: zero is false, the rest true."""
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            try:
                return bool(_parse_number(value.strip()))
            except ValueError:
                return value
        return value

    @field_validator("qa_plist", mode="before")
    @classmethod
    def _numeric_plist(cls, value):
        """Turn ``"1 2 3"`` / ``"[1,2]"`` into numbers; keep plot labels as-is."""
        if not isinstance(value, str):
            return value
        text = value.strip().strip("[]").strip()
        if not text:
            return None
        tokens = [t for t in _NUMBER_SPLIT.split(text) if t]
        try:
            return [_parse_number(t) for t in tokens]
        except ValueError:
            return value


# Option names as typed by users → ProcessOptions field names.
OPTION_FIELDS: Dict[str, str] = {
    "subject_id": "subject_id",
    "subject_info": "subject_info",
    "pipeline_info": "pipeline_info",
    "design_info": "design_info",
    "root_folder": "root_folder",
    "overwrite": "overwrite",
    "parallel": "parallel",
    "qa_plist": "qa_plist",
    "qa_set": "qa_set",
    "qa_plots": "qa_plots",
    "localcopy": "localcopy",
    "immediatereturn": "immediate_return",
    "immediate_return": "immediate_return",
    "donotexpand": "donotexpand",
}


# --------------------------------------------------------------------------- #
# 2.  Settings file                                                           #
# --------------------------------------------------------------------------- #


class BackendSettings(BaseModel):
    """How the processing backend is reached.

    Attributes:
        kind: ``matlab`` runs the toolbox through a MATLAB batch process;
            ``dry-run`` only records the calls.
        command: Executable and leading arguments; the generated script is
            appended as the final argument.
        interactive_command: Same for calls that open a GUI and must keep
            MATLAB running until the user closes it.
        startup: Folders added to the MATLAB path before each call.
        marker: Prefix of stdout lines carrying values back from MATLAB.
    """

    kind: Literal["matlab", "dry-run"] = "matlab"
    command: List[str] = Field(default_factory=lambda: ["matlab", "-nodisplay", "-batch"])
    interactive_command: List[str] = Field(default_factory=lambda: ["matlab", "-r"])
    startup: List[str] = Field(default_factory=list)
    marker: str = "FLPROCESS_OUTPUT:"


class Settings(BaseModel):
    """Root settings object consumed by the CLI and the orchestrator.

    Attributes:
        version: Version string of the settings schema.
        root_folder: Default root folder (below ``$FLPROCESS_ROOT``).
        library_dir: Folder with shared pipeline/design configs.
        on_error: Per-subject failure policy.
        defaults: Option defaults applied below explicit options.
        backend: Backend selection and command line.
    """

    version: str = "1"
    root_folder: Optional[Path] = None
    library_dir: Optional[Path] = None
    on_error: Literal["abort", "skip"] = "abort"
    defaults: Dict[str, Any] = Field(default_factory=dict)
    backend: BackendSettings = Field(default_factory=BackendSettings)

    @field_validator("defaults", mode="before")
    @classmethod
    def _lower_keys(cls, value):
        """Option names are case-insensitive; store them lower-cased."""
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(k).lower(): v for k, v in value.items()}
        return value


__all__ = [
    "ProcessOptions",
    "OPTION_FIELDS",
    "BackendSettings",
    "Settings",
]
