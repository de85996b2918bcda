import subprocess
from pathlib import Path

import pytest

from flprocess.backends import DryRunBackend, MatlabBackend, make_backend
from flprocess.backends.matlab import to_matlab
from flprocess.config.schema import BackendSettings
from flprocess.errors import BackendError


class FakeRun:
    """Stand-in for ``subprocess.run`` that records its arguments."""

    def __init__(self, stdout: str = ""):
        self.stdout = stdout
        self.calls = []

    def __call__(self, cmd, check, **kwargs):
        self.calls.append((cmd, check, kwargs))

        class Result:
            returncode = 0
            stdout = self.stdout

        return Result()


def test_to_matlab_literals():
    """Verify Python values become MATLAB literals."""
    assert to_matlab(None) == "[]"
    assert to_matlab(True) == "true"
    assert to_matlab(3) == "3"
    assert to_matlab(float("nan")) == "NaN"
    assert to_matlab("it's") == "'it''s'"
    assert to_matlab(Path("/r/sub-01.mat")) == "'/r/sub-01.mat'"
    assert to_matlab([1, 2.5]) == "[1 2.5]"
    assert to_matlab(["a", 1]) == "{'a',1}"
    assert to_matlab({"model_session": 0}) == "struct('model_session',{0})"
    with pytest.raises(TypeError):
        to_matlab(object())


def test_preproc_command_line(monkeypatch):
    """Verify the preprocessing call is rendered and run in batch mode."""
    fake = FakeRun()
    monkeypatch.setattr(subprocess, "run", fake)

    MatlabBackend().run_preproc(
        Path("/r/sub-01.mat"),
        subject_info="/d/a.cfg",
        pipeline="pipe.cfg",
        options=(("localcopy", 1), ("qa_plots", False)),
    )
    cmd, check, kwargs = fake.calls[0]
    assert cmd[:3] == ["matlab", "-nodisplay", "-batch"]
    assert cmd[3] == (
        "evlab17_run_preproc('/d/a.cfg','pipe.cfg',[],'localcopy',1,'qa_plots',false,"
        "'dataset','/r/sub-01.mat');"
    )
    assert check is True
    assert kwargs["capture_output"] is True


def test_startup_paths_are_added(monkeypatch):
    """Verify configured folders are put on the MATLAB path first."""
    fake = FakeRun()
    monkeypatch.setattr(subprocess, "run", fake)
    backend = MatlabBackend(BackendSettings(startup=["/opt/evlab17"], command=["octave", "--eval"]))
    backend.run_preproc(Path("/r/s.mat"))
    cmd = fake.calls[0][0]
    assert cmd[:2] == ["octave", "--eval"]
    assert cmd[2].startswith("addpath('/opt/evlab17'); evlab17_run_preproc([],")


def test_qa_output_is_read_from_marker_lines(monkeypatch):
    """Verify values come back through the output marker."""
    fake = FakeRun("Loading...\nFLPROCESS_OUTPUT:/r/sub-01/results/qa\n")
    monkeypatch.setattr(subprocess, "run", fake)
    out = MatlabBackend().run_qa(Path("/r/sub-01.mat"), options=(("qa_plist", [1, 2]),))
    assert out == "/r/sub-01/results/qa"
    assert "evlab17_run_qa([],'dataset','/r/sub-01.mat','qa_plist',[1 2])" in fake.calls[0][0][-1]


def test_design_info_is_decoded(monkeypatch):
    """Verify stored design metadata is parsed from JSON."""
    fake = FakeRun('FLPROCESS_OUTPUT:{"design": {"conditions": ["S", "N"]}}\n')
    monkeypatch.setattr(subprocess, "run", fake)
    info = MatlabBackend().get_design_info(Path("/r/sub-01.mat"))
    assert info == {"design": {"conditions": ["S", "N"]}}


def test_non_zero_exit_raises_backend_error(monkeypatch):
    """Verify MATLAB failures surface as BackendError."""

    def failing(cmd, check, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, output="", stderr="Undefined function 'evlab17_run_qa'")

    monkeypatch.setattr(subprocess, "run", failing)
    with pytest.raises(BackendError, match="status 1: Undefined function"):
        MatlabBackend().run_qa(Path("/r/sub-01.mat"))


def test_missing_executable_raises_backend_error(monkeypatch):
    """Verify a missing MATLAB binary is reported clearly."""

    def missing(cmd, check, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", missing)
    with pytest.raises(BackendError, match="MATLAB executable not found: matlab"):
        MatlabBackend().open_dataset(Path("/r/sub-01.mat"))


def test_gui_calls_use_interactive_command(monkeypatch):
    """Verify GUI calls keep MATLAB open and do not capture output."""
    fake = FakeRun()
    monkeypatch.setattr(subprocess, "run", fake)
    MatlabBackend().job_manager(Path("/r/sub-01.mat"), "gui")
    MatlabBackend().job_manager(Path("/r/sub-01.mat"), "cancel")
    (gui_cmd, _, gui_kw), (cancel_cmd, _, cancel_kw) = fake.calls
    assert gui_cmd[:2] == ["matlab", "-r"] and gui_kw == {}
    assert gui_cmd[-1].endswith("conn_jobmanager;")
    assert cancel_cmd[:3] == ["matlab", "-nodisplay", "-batch"]
    assert cancel_cmd[-1].endswith("conn_jobmanager cancel;")
    with pytest.raises(ValueError):
        MatlabBackend().job_manager(Path("/r/sub-01.mat"), "pause")


def test_make_backend_selects_kind():
    """Verify the factory honours dry-run in settings and as a flag."""
    assert isinstance(make_backend(BackendSettings()), MatlabBackend)
    assert isinstance(make_backend(BackendSettings(kind="dry-run")), DryRunBackend)
    assert isinstance(make_backend(BackendSettings(), dry_run=True), DryRunBackend)
