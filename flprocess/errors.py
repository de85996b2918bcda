"""Exceptions raised while resolving subjects and dispatching stages."""

from __future__ import annotations


class FlProcessError(RuntimeError):
    """Base class for every fatal *flprocess* error."""

    pass


class OptionError(FlProcessError):
    """Raised when an option value cannot be coerced to its declared type."""

    pass


class UsageError(FlProcessError):
    """Raised for unsupported stage/option combinations or inconsistent inputs."""

    pass


class PatternError(FlProcessError):
    """Raised when a glob pattern matches no files."""

    pass


class BackendError(FlProcessError):
    """Raised when the processing backend reports a failure."""

    pass


class UnknownCommandError(FlProcessError):
    """Raised when a utility keyword is not present in the command registry."""

    pass


__all__ = [
    "FlProcessError",
    "OptionError",
    "UsageError",
    "PatternError",
    "BackendError",
    "UnknownCommandError",
]
