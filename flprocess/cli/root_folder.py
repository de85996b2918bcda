"""``flprocess-cli root-folder`` – show or set the root folder."""

from __future__ import annotations

from pathlib import Path

import click


@click.command(
    name="root-folder",
    context_settings=dict(help_option_names=["-h", "--help"], max_content_width=120),
    help="Print the root folder; with FOLDER, set it first.",
)
@click.argument("folder", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.pass_obj
def cli(ctx_obj, folder: Path | None) -> None:
    """Print (and optionally set) the root folder."""
    click.echo(str(ctx_obj["root_folder"].query(folder)))


__all__ = ["cli"]
