"""
flprocess package initialisation.

Exposes

* ``__version__`` resolved from the installed distribution metadata;
* :func:`process` – one-call convenience that loads the settings, builds the
  configured backend and hands the invocation to an :class:`Orchestrator`
  bound to the process-wide :data:`root_folder`;
* :class:`Orchestrator`, :func:`load_settings` and :data:`root_folder` for
  callers that wire things themselves.
"""

from importlib.metadata import PackageNotFoundError, version
from typing import Any

try:
    __version__: str = version("flprocess")
except PackageNotFoundError:
    __version__ = "0.0.0"

from .config import load_settings, root_folder  # noqa: E402
from .orchestrator import Orchestrator  # noqa: E402


def process(steps: Any, *args: Any, dry_run: bool = False) -> Any:
    """Run *steps* (stages or a utility keyword) with the flat option list *args*.

    Example::

        outputs = process("preproc", "subject_info", "/data/Sub*.cfg",
                          "pipeline_info", "pipeline_DefaultMNI.cfg")
    """
    from .backends import make_backend

    settings = load_settings()
    backend = make_backend(settings.backend, dry_run=dry_run)
    return Orchestrator(backend, settings=settings).process(steps, *args)


__all__: list[str] = ["__version__", "process", "Orchestrator", "load_settings", "root_folder"]
