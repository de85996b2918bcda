"""Small click helpers for CLI progress output."""

from __future__ import annotations

from typing import Optional

import click

__all__ = ["echo_banner", "echo_output", "echo_success"]


def echo_banner(text: str) -> None:
    """Print a cyan banner announcing a batch."""
    click.secho(f"\n=== {text} ===", fg="cyan")


def echo_output(index: int, output: Optional[str]) -> None:
    """Print one subject's output path, or a dash when nothing was produced.

    Args:
        index: 1-based subject position.
        output: Output path returned by the last stage.
    """
    if output is None:
        click.secho(f"  {index:>3}. -", fg="yellow")
    else:
        click.echo(f"  {index:>3}. {output}")


def echo_success(text: str) -> None:
    """Print a green message prefixed with a tick."""
    click.secho(f"✓ {text}", fg="green")
