"""Processing back-ends."""

from __future__ import annotations

from ..config.schema import BackendSettings
from .base import ProcessingBackend
from .dry_run import BackendCall, DryRunBackend
from .matlab import MatlabBackend


def make_backend(settings: BackendSettings | None = None, *, dry_run: bool = False) -> ProcessingBackend:
    """Return the back-end selected by *settings* (or a dry-run one)."""
    settings = settings or BackendSettings()
    if dry_run or settings.kind == "dry-run":
        return DryRunBackend()
    return MatlabBackend(settings)


__all__ = ["ProcessingBackend", "DryRunBackend", "BackendCall", "MatlabBackend", "make_backend"]
