"""Expose the Click group behind the ``flprocess-cli`` script.

The group

* loads and validates the settings file (``--config`` or the search
  sequence of :func:`flprocess.config.load_settings`);
* fixes the root folder for the invocation (``--root-folder``, then
  ``$FLPROCESS_ROOT``, then the settings file, then the package default);
* sets up logging via :func:`flprocess.utils.logging.setup_logging`;
* registers the sub-commands, which are imported on first use.
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Dict

import click

from flprocess import __version__
from flprocess.config import RootFolder, load_settings
from flprocess.utils.logging import setup_logging


class LazyGroup(click.Group):
    """Click group that imports sub-commands lazily."""

    def __init__(self, *args, **kwargs):
        self._lazy: dict[str, str] = {}
        super().__init__(*args, **kwargs)

    def set_lazy_command(self, name: str, target: str) -> None:
        """Register *name* to be imported from ``module:attr`` on first use."""
        self._lazy[name] = target

    def list_commands(self, ctx):  # noqa: D401 - Click signature
        return sorted({*super().list_commands(ctx), *self._lazy})

    def get_command(self, ctx, cmd_name):  # noqa: D401 - Click signature
        cmd = super().get_command(ctx, cmd_name)
        if cmd is not None:
            return cmd
        target = self._lazy.get(cmd_name)
        if not target:
            return None
        module_name, attr = target.split(":", 1)
        cmd = getattr(importlib.import_module(module_name), attr)
        self.add_command(cmd, name=cmd_name)
        return cmd


_CTX: Dict[str, Any] = dict(
    help_option_names=["-h", "--help"],
    show_default=True,
    max_content_width=120,
)


@click.group(
    cls=LazyGroup,
    context_settings=_CTX,
    help="""\b
flprocess-cli – first-level batch processing.

\b
  flprocess-cli run preproc subject_info '/data/Sub*.cfg' pipeline_info pipeline_DefaultMNI.cfg
  flprocess-cli run model,qa.create Exp/sub-01 design_info model_Lang.cfg
  flprocess-cli run report Exp/sub-01
""",
)
@click.version_option(__version__)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Settings file (default: $FLPROCESS_CONFIG, ./code/config/flprocess.yaml, packaged default).",
)
@click.option(
    "-r",
    "--root-folder",
    type=click.Path(file_okay=False, path_type=Path),
    help="Folder where subject ids without a path are placed.",
)
@click.option("-v", "--verbose", is_flag=True, help="INFO-level console output.")
@click.option("--debug", is_flag=True, help="DEBUG-level console output.")
@click.option(
    "--save-logfile",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Mirror console output into this plain-text file.",
)
@click.pass_context
def main(  # noqa: D401 – Click requires the callback to be named “main”.
    ctx: click.Context,
    config_path: Path | None,
    root_folder: Path | None,
    verbose: bool,
    debug: bool,
    save_logfile: Path | None,
) -> None:
    """Root command executed by *flprocess-cli*.

    Raises:
        click.ClickException: When the settings file is missing or invalid.
    """
    try:
        settings = load_settings(config_path)
    except (FileNotFoundError, RuntimeError) as exc:
        raise click.ClickException(str(exc)) from exc

    root = RootFolder(settings.root_folder)
    if root_folder is not None:
        root.set(root_folder)

    current = root.get()
    setup_logging(
        root=current if current.is_dir() else None,
        verbose=verbose,
        debug=debug,
        extra_text_log=save_logfile,
    )

    ctx.obj = {
        "settings": settings,
        "root_folder": root,
        "verbose": verbose,
        "debug": debug,
    }


main.set_lazy_command("run", "flprocess.cli.run:cli")
main.set_lazy_command("root-folder", "flprocess.cli.root_folder:cli")

cli = main
__all__: list[str] = ["main"]
