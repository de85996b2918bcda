"""
Process-wide root folder.

Subject ids without an absolute or ``./`` prefix are placed below the root
folder.  The value is resolved lazily on first access (``$FLPROCESS_ROOT``,
then the configured default, then ``<package>/REPOSITORY``), can be replaced
through :meth:`RootFolder.set` and returns to its lazy state only through
:meth:`RootFolder.reset`.

A single :data:`root_folder` instance is shared by the CLI and by
:func:`flprocess.process`; tests and embedding applications construct their
own :class:`RootFolder` and inject it into the orchestrator.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import structlog

log = structlog.get_logger()

PACKAGE_DEFAULT = Path(__file__).resolve().parents[1] / "REPOSITORY"


class RootFolder:
    """Read/write root folder with lazy initialisation."""

    def __init__(self, default: Optional[str | Path] = None) -> None:
        """Store the fallback used when no value has been set.

        Args:
            default: Folder used when ``$FLPROCESS_ROOT`` is unset.  ``None``
                falls back to the package-local ``REPOSITORY`` folder.
        """
        self._default = Path(default) if default else None
        self._value: Optional[Path] = None

    @property
    def initialised(self) -> bool:
        """``True`` once the value has been resolved or set."""
        return self._value is not None

    def configure_default(self, default: Optional[str | Path]) -> None:
        """Replace the fallback used by the next lazy initialisation."""
        self._default = Path(default) if default else None

    def get(self) -> Path:
        """Return the current root folder, initialising it on first access."""
        if self._value is None:
            env = os.environ.get("FLPROCESS_ROOT")
            if env:
                self._value = Path(env).expanduser()
            elif self._default is not None:
                self._value = self._default.expanduser()
            else:
                self._value = PACKAGE_DEFAULT
            log.debug("root_folder.init", path=str(self._value))
        return self._value

    def set(self, path: str | Path) -> Path:
        """Replace the root folder for the rest of the process lifetime."""
        if not str(path).strip():
            raise ValueError("root folder cannot be empty")
        self._value = Path(path).expanduser()
        log.info("root_folder.set", path=str(self._value))
        return self._value

    def query(self, path: Optional[str | Path] = None) -> Path:
        """Return the root folder, setting it first when *path* is non-empty."""
        if path is not None and str(path).strip():
            self.set(path)
        return self.get()

    def reset(self) -> None:
        """Forget the current value; the next :meth:`get` re-initialises it."""
        self._value = None


root_folder = RootFolder()

__all__ = ["RootFolder", "root_folder", "PACKAGE_DEFAULT"]
