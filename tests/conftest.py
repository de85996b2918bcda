"""Pytest configuration for flprocess tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from flprocess.backends import DryRunBackend
from flprocess.config import RootFolder
from flprocess.orchestrator import Orchestrator


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch):
    """Keep logs, settings lookups and relative paths inside *tmp_path*."""
    monkeypatch.setenv("FLPROCESS_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("FLPROCESS_ROOT", raising=False)
    monkeypatch.delenv("FLPROCESS_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    """Root folder used for subject ids without a path."""
    path = tmp_path / "repo"
    path.mkdir()
    return path


@pytest.fixture
def root(root_dir: Path) -> RootFolder:
    """A root-folder service pointing at *root_dir*."""
    service = RootFolder()
    service.set(root_dir)
    return service


@pytest.fixture
def backend() -> DryRunBackend:
    """Backend that records calls."""
    return DryRunBackend()


@pytest.fixture
def orch(backend: DryRunBackend, root: RootFolder, tmp_path: Path) -> Orchestrator:
    """Orchestrator wired to the recording backend."""
    return Orchestrator(backend, root=root, start_dir=tmp_path)


@pytest.fixture
def cfg_files(tmp_path: Path) -> list[Path]:
    """Two subject-info files below ``data/`` (one in a sub-folder)."""
    data = tmp_path / "data"
    (data / "site2").mkdir(parents=True)
    first = data / "DataSubject1.cfg"
    second = data / "site2" / "DataSubject2.cfg"
    for f in (first, second):
        f.write_text("#functionals\nrun1.nii\n")
    (data / "notes.txt").write_text("ignored\n")
    return [first, second]
