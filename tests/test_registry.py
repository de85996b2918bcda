from pathlib import Path

import pytest

from flprocess.errors import UnknownCommandError, UsageError
from flprocess.registry import CommandRegistry


def test_registry_aliases_and_case():
    """Verify commands resolve by name or alias in any case."""
    reg = CommandRegistry()
    seen = []

    @reg.register("parallel.report", "report")
    def _report(*args):
        seen.append(args)
        return "done"

    assert reg.dispatch("REPORT", "x") == "done"
    assert reg.dispatch("parallel.report") == "done"
    assert seen == [("x",), ()]
    assert "Report" in reg
    assert reg.names() == ["parallel.report", "report"]


def test_unknown_command_is_reported():
    """Verify unregistered names raise UnknownCommandError."""
    with pytest.raises(UnknownCommandError, match="unrecognized option frobnicate"):
        CommandRegistry().dispatch("frobnicate")


def test_job_commands_address_resolved_dataset(orch, backend, root_dir: Path):
    """Verify job-manager keywords load the dataset of the given subject."""
    orch.process("report", "Exp/sub-01")
    orch.process("parallel.report.gui", "Exp/sub-01")
    orch.process("cancel", "/abs/sub-02")
    orch.process("parallel.delete", "./here/sub-03")
    assert [(c.dataset, c.kwargs["action"]) for c in backend.calls] == [
        (root_dir / "Exp" / "sub-01.mat", "report"),
        (root_dir / "Exp" / "sub-01.mat", "gui"),
        (Path("/abs/sub-02.mat"), "cancel"),
        (orch.invocation_dir / "here" / "sub-03.mat", "delete"),
    ]


def test_open_needs_a_subject(orch, backend, root_dir: Path):
    """Verify open requires a subject id and shows its dataset."""
    with pytest.raises(UsageError, match="'open' needs a subject id"):
        orch.process("open")
    orch.process("open", "sub-01")
    assert backend.calls[-1].method == "open_dataset"
    assert backend.calls[-1].dataset == root_dir / "sub-01.mat"


def test_plot_commands_forward_arguments(orch, backend):
    """Verify plot keywords pass their arguments through."""
    orch.process("qaplots", "/data/repo")
    orch.process("model.plots", "sub-01", "Lang")
    assert backend.methods() == ["qa_plots_explore", "model_plots"]
    assert backend.calls[0].kwargs["args"] == ("/data/repo",)
    assert backend.calls[1].kwargs["args"] == ("sub-01", "Lang")


def test_rootfolder_keyword_queries_and_sets(orch, root_dir: Path, tmp_path: Path):
    """Verify utils_rootfolder returns the folder and sets it when given one."""
    assert orch.process("utils_rootfolder") == root_dir
    assert orch.process("utils_rootfolder", str(tmp_path / "other")) == tmp_path / "other"
    assert orch.root_folder.get() == tmp_path / "other"
    assert orch.process("rootfolder", "") == tmp_path / "other"


def test_unknown_keyword_through_orchestrator(orch):
    """Verify non-stage, non-command names are rejected."""
    with pytest.raises(UnknownCommandError):
        orch.process("qa.plotz")
