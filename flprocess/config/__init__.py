"""
Configuration package façade.

Exports the small, stable surface that external callers rely on:

* :func:`load_settings` – locate and validate ``flprocess.yaml``.
* :class:`Settings` / :class:`ProcessOptions` – Pydantic models.
* :class:`RootFolder` and the shared :data:`root_folder` instance.
"""

from .loader import load_settings  # noqa: F401
from .root import RootFolder, root_folder  # noqa: F401
from .schema import ProcessOptions, Settings  # noqa: F401

__all__: list[str] = [
    "load_settings",
    "Settings",
    "ProcessOptions",
    "RootFolder",
    "root_folder",
]
