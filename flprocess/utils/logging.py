"""
Logging configuration for the CLI and embedding scripts.

* Rich console output, WARNING by default, INFO with ``-v`` and DEBUG with
  ``--debug``.
* Rotating JSON log ``flprocess.log`` under ``$FLPROCESS_LOG_DIR``, else
  ``<root folder>/logs``, else the package-local ``logs/`` folder.
* Optional plain-text mirror (``--save-logfile``).

Modules only call ``structlog.get_logger()``; :func:`setup_logging` is the
single place where handlers and renderers are chosen.
"""

from __future__ import annotations

import atexit
import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

import structlog
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer
from structlog.stdlib import LoggerFactory

__all__ = ["setup_logging", "log_dir"]

LOG_NAME = "flprocess.log"


def log_dir(root: Path | None = None) -> Path:
    """Return the folder that receives the rotating JSON log."""
    env_dir = os.environ.get("FLPROCESS_LOG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    if root is not None:
        return Path(root) / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def _json_file_handler(root: Path | None, level: int) -> logging.Handler:
    """Return a rotating file handler for the JSON event log.

    Args:
        root: Root folder; see :func:`log_dir`.
        level: Handler level.
    """
    folder = log_dir(root)
    folder.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=folder / LOG_NAME,
        maxBytes=5_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _text_file_handler(path: Optional[Path], level: int) -> logging.Handler | None:
    """Return a plain-text mirror handler, or *None* when *path* is *None*."""
    if path is None:
        return None
    path = Path(path).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8", mode="a")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    atexit.register(handler.close)
    return handler


def setup_logging(
    *,
    root: Path | None = None,
    verbose: bool = False,
    debug: bool = False,
    extra_text_log: Optional[Path] = None,
) -> None:
    """Configure console logging plus the JSON and optional text files.

    Args:
        root: Root folder used to place the JSON log.
        verbose: Show INFO events on the console.
        debug: Show DEBUG events and rich tracebacks with locals.
        extra_text_log: Optional plain-text mirror of the console output.
    """
    console_lvl = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    file_lvl = logging.DEBUG if debug else logging.INFO

    handlers: list[logging.Handler] = [
        RichHandler(
            level=console_lvl,
            rich_tracebacks=True,
            tracebacks_show_locals=debug,
            markup=False,
        ),
        _json_file_handler(root, file_lvl),
    ]
    txt = _text_file_handler(extra_text_log, console_lvl)
    if txt is not None:
        handlers.append(txt)

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, format="%(message)s", force=True)

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            ConsoleRenderer(colors=False) if verbose or debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min(console_lvl, file_lvl)),
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=False,
    )
