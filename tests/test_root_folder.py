from pathlib import Path

import pytest

from flprocess.config.root import PACKAGE_DEFAULT, RootFolder


def test_lazy_default_is_package_repository():
    """Verify the package-local REPOSITORY folder is the last fallback."""
    service = RootFolder()
    assert not service.initialised
    assert service.get() == PACKAGE_DEFAULT
    assert service.initialised
    assert PACKAGE_DEFAULT.name == "REPOSITORY"


def test_environment_beats_configured_default(monkeypatch, tmp_path: Path):
    """Verify $FLPROCESS_ROOT wins over the settings default."""
    monkeypatch.setenv("FLPROCESS_ROOT", str(tmp_path / "env"))
    assert RootFolder(tmp_path / "cfg").get() == tmp_path / "env"


def test_value_persists_until_reset(monkeypatch, tmp_path: Path):
    """Verify set() sticks and reset() returns to lazy initialisation."""
    service = RootFolder(tmp_path / "cfg")
    assert service.get() == tmp_path / "cfg"
    service.set(tmp_path / "new")
    monkeypatch.setenv("FLPROCESS_ROOT", str(tmp_path / "env"))
    assert service.get() == tmp_path / "new"
    service.reset()
    assert service.get() == tmp_path / "env"


def test_query_sets_only_non_empty_values(tmp_path: Path):
    """Verify query() treats empty arguments as a plain read."""
    service = RootFolder(tmp_path / "cfg")
    assert service.query() == tmp_path / "cfg"
    assert service.query("") == tmp_path / "cfg"
    assert service.query(tmp_path / "x") == tmp_path / "x"


def test_empty_set_is_rejected():
    """Verify the root folder cannot be set to an empty value."""
    with pytest.raises(ValueError):
        RootFolder().set("  ")
