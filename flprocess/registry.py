"""
Utility-command registry.

Invocations whose first argument is not a processing stage (``open``,
``report``, ``utils_rootfolder`` …) are looked up here.  Names are
case-insensitive and each command may carry aliases.  Unknown names raise
:class:`~flprocess.errors.UnknownCommandError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict

import structlog

from .errors import UnknownCommandError, UsageError

if TYPE_CHECKING:  # pragma: no cover
    from .orchestrator import Orchestrator

log = structlog.get_logger()

Handler = Callable[..., Any]


class CommandRegistry:
    """Name → handler mapping with aliases."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}

    def add(self, name: str, handler: Handler, *aliases: str) -> None:
        """Register *handler* under *name* and every alias."""
        for key in (name, *aliases):
            self._handlers[key.lower()] = handler

    def register(self, name: str, *aliases: str) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`add`."""

        def _wrap(fn: Handler) -> Handler:
            self.add(name, fn, *aliases)
            return fn

        return _wrap

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._handlers

    def names(self) -> list[str]:
        """Return every registered name and alias, sorted."""
        return sorted(self._handlers)

    def dispatch(self, name: str, *args: Any) -> Any:
        """Run the handler registered for *name*.

        Raises:
            UnknownCommandError: When *name* is not registered.
        """
        handler = self._handlers.get(name.lower())
        if handler is None:
            log.error("command.unknown", command=name)
            raise UnknownCommandError(f"unrecognized option {name}")
        log.debug("command.dispatch", command=name.lower(), args=args)
        return handler(*args)


def _first_arg(command: str, args: tuple[Any, ...]) -> str:
    """Return the subject id a dataset-addressed command needs."""
    if not args or not str(args[0]).strip():
        raise UsageError(f"'{command}' needs a subject id or dataset file")
    return str(args[0])


def build_default_registry(orchestrator: "Orchestrator") -> CommandRegistry:
    """Return a registry wired to *orchestrator*'s backend and root folder."""
    registry = CommandRegistry()
    backend = orchestrator.backend

    def dataset_of(command: str, args: tuple[Any, ...]):
        return orchestrator.locate(_first_arg(command, args)).dataset_path

    @registry.register("utils_rootfolder", "rootfolder")
    def _rootfolder(*args: Any):
        return orchestrator.root_folder.query(args[0] if args else None)

    @registry.register("open")
    def _open(*args: Any):
        backend.open_dataset(dataset_of("open", args))

    @registry.register("qa.plots", "qaplots")
    def _qa_plots(*args: Any):
        backend.qa_plots_explore(*args)

    @registry.register("model.plots", "modelplots")
    def _model_plots(*args: Any):
        backend.model_plots(*args)

    for action, names in (
        ("report", ("parallel.report", "report")),
        ("gui", ("parallel.report.gui", "report.gui")),
        ("cancel", ("parallel.cancel", "cancel")),
        ("delete", ("parallel.delete", "delete")),
    ):

        def _jobs(*args: Any, _action: str = action, _name: str = names[0]):
            backend.job_manager(dataset_of(_name, args), _action)

        registry.add(names[0], _jobs, *names[1:])

    return registry


__all__ = ["CommandRegistry", "build_default_registry"]
