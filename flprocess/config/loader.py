"""
YAML settings loader.

Locates, reads and validates ``flprocess.yaml`` before returning a
:class:`flprocess.config.schema.Settings` instance.

Search precedence (first match wins)
1. An explicit path argument (``--config`` on the CLI).
2. The ``FLPROCESS_CONFIG`` environment variable.
3. ``<start_dir>/code/config/flprocess.yaml`` – project-local override.
4. The packaged default shipped inside the wheel.
"""

from __future__ import annotations

import os
from importlib.resources import as_file, files
from pathlib import Path
from typing import Optional

import structlog
import yaml

from .schema import Settings

log = structlog.get_logger()

_DEFAULT_SETTINGS = files("flprocess.resources") / "default_settings.yaml"
SETTINGS_NAME = "flprocess.yaml"


def _project_local(start_dir: Optional[Path]) -> Optional[Path]:
    """Return ``<start_dir>/code/config/flprocess.yaml`` or ``None``."""
    if start_dir is None:
        return None
    return Path(start_dir).expanduser().resolve() / "code" / "config" / SETTINGS_NAME


def _from_env() -> Optional[Path]:
    """Return the path named by ``$FLPROCESS_CONFIG`` if set."""
    env = os.environ.get("FLPROCESS_CONFIG")
    return Path(env).expanduser() if env else None


def _first_existing(*candidates: Optional[Path]) -> Optional[Path]:
    """Return the first path in *candidates* that exists on disk."""
    for p in candidates:
        if p is not None and p.exists():
            return p
    return None


def _load_yaml(path: Path) -> dict:
    """Read a YAML document, returning an empty dict for empty files."""
    return yaml.safe_load(path.read_text()) or {}


def resolve_settings_path(
    explicit: Optional[str | Path] = None,
    start_dir: Optional[str | Path] = None,
) -> Path:
    """Resolve the settings file according to the documented precedence.

    Args:
        explicit: Path supplied by the caller.  A missing explicit file is an
            error rather than a silent fallback.
        start_dir: Directory used for the project-local lookup.

    Returns:
        Path to the YAML that should be loaded.

    Raises:
        FileNotFoundError: When *explicit* does not exist.
    """
    if explicit is not None:
        path = Path(explicit).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        return path

    resolved = _first_existing(
        _from_env(),
        _project_local(Path(start_dir) if start_dir else None),
    )
    if resolved is None:
        with as_file(_DEFAULT_SETTINGS) as p:
            resolved = p
    return resolved


def load_settings(
    path: Optional[str | Path] = None,
    *,
    start_dir: Optional[str | Path] = None,
) -> Settings:
    """Return a fully validated :class:`Settings`.

    Args:
        path: Explicit settings file.  ``None`` triggers the search sequence
            described in the module doc-string.
        start_dir: Directory used for the project-local override lookup;
            defaults to the current working directory.

    Returns:
        A :class:`Settings` object ready for downstream use.

    Raises:
        RuntimeError: When the YAML fails Pydantic validation.
    """
    start = Path(start_dir) if start_dir else Path.cwd()
    settings_yaml = resolve_settings_path(path, start)
    log.debug("settings.load", path=str(settings_yaml))

    try:
        return Settings(**_load_yaml(settings_yaml))
    except Exception as exc:  # pydantic.ValidationError or YAML issues
        raise RuntimeError(f"Invalid configuration – {exc}") from exc


__all__ = ["load_settings", "resolve_settings_path", "SETTINGS_NAME"]
