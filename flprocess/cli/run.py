"""CLI wrapper around :meth:`flprocess.orchestrator.Orchestrator.process`."""

from __future__ import annotations

from typing import Any, Sequence

import click
import structlog

from ..backends import DryRunBackend, make_backend
from ..errors import FlProcessError
from ..options import pair_arguments
from ..orchestrator import Orchestrator
from ..utils.display import echo_banner, echo_output, echo_success

log = structlog.get_logger()

# Options that may be given several times on the command line.
LIST_KEYS = frozenset({"subject_id", "subject_info", "pipeline_info", "design_info"})


def merge_repeated(args: Sequence[str]) -> list[Any]:
    """Merge repeated list-valued options into one list-valued pair.

    ``subject_info a.cfg subject_info b.cfg`` becomes
    ``subject_info [a.cfg, b.cfg]``.  Other keys are left untouched so that
    a repeated scalar option is still reported by the option normalizer.
    """
    merged: list[tuple[str, Any]] = []
    positions: dict[str, int] = {}
    for key, value in pair_arguments(args):
        name = key.lower()
        if name not in LIST_KEYS:
            merged.append((key, value))
            continue
        if name in positions:
            i = positions[name]
            previous = merged[i][1]
            values = previous if isinstance(previous, list) else [previous]
            merged[i] = (merged[i][0], [*values, value])
        else:
            positions[name] = len(merged)
            merged.append((key, value))
    return [item for pair in merged for item in pair]


@click.command(
    name="run",
    context_settings=dict(help_option_names=["-h", "--help"], max_content_width=120),
    help="""\b
Run processing stages, or a utility command.

\b
STAGES   comma-separated list of preproc, preproc.import, preproc.append,
         model, qa.create, qa.plot, all; or one utility keyword
         (open, qa.plots, model.plots, report, report.gui, cancel, delete,
         utils_rootfolder).
ARGS     flat option list: [SUBJECT_ID] KEY VALUE [KEY VALUE ...];
         for a utility keyword, its positional arguments. A subject id
         given to open, report, report.gui, cancel or delete is placed
         like any other id: below the root folder unless it starts with
         . or /, so use ./data/sub-01 for a dataset in the current folder.
""",
)
@click.argument("stages")
@click.argument("args", nargs=-1)
@click.option("--dry-run", is_flag=True, help="Record backend calls instead of running them.")
@click.option(
    "--continue-on-error",
    is_flag=True,
    help="Log a failing subject and carry on with the next one.",
)
@click.pass_obj
def cli(ctx_obj, stages: str, args: tuple[str, ...], dry_run: bool, continue_on_error: bool) -> None:
    """Run *stages* for the subjects described by *args*.

    Args:
        ctx_obj: Click context populated in ``flprocess.cli.main``.
        stages: Stage list or utility keyword.
        args: Flat option list.
        dry_run: Use the recording backend.
        continue_on_error: Switch the per-subject failure policy to ``skip``.

    Raises:
        click.ClickException: For any validation or backend failure.
    """
    settings = ctx_obj["settings"]
    backend = make_backend(settings.backend, dry_run=dry_run)
    orchestrator = Orchestrator(
        backend,
        root=ctx_obj["root_folder"],
        settings=settings,
        on_error="skip" if continue_on_error else None,
    )

    try:
        call_args = list(args) if orchestrator.utility_name(stages) is not None else merge_repeated(args)
        result = orchestrator.process(stages, *call_args)
    except FlProcessError as exc:
        log.error("run.failed", stages=stages, error=str(exc))
        raise click.ClickException(str(exc)) from exc

    if isinstance(backend, DryRunBackend) and backend.calls:
        echo_banner("Backend calls (dry run)")
        for call in backend.calls:
            target = f" {call.dataset}" if call.dataset is not None else ""
            click.echo(f"  {call.method}{target}")

    if isinstance(result, list):
        echo_banner(f"Outputs ({stages.upper()})")
        for n, output in enumerate(result, start=1):
            echo_output(n, output)
        echo_success(f"{sum(o is not None for o in result)} of {len(result)} subjects produced output")
    elif result is not None:
        click.echo(str(result))


__all__ = ["cli", "merge_repeated"]
