"""Shared helpers for the CLI layer (logging and console output)."""

from __future__ import annotations

from .display import echo_banner, echo_output, echo_success
from .logging import log_dir, setup_logging

__all__ = ["setup_logging", "log_dir", "echo_banner", "echo_output", "echo_success"]
