"""Command line entry point: load everything, run the session, send the request."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from textual.logging import TextualHandler

from rhc.app import RhcApp
from rhc.config import Config, ConfigError, load_config
from rhc.files import (
    DefinitionError,
    find_environment,
    list_all_choices,
    list_all_environments,
    load_choice,
)
from rhc.history import HistoryBackend, HistoryStore, JsonHistoryFile, MemoryHistory
from rhc.http import RequestError, send_request
from rhc.response import print_response
from rhc.session import BindingVariable, Cancelled, Confirmed, Outcome, Session

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Pick an HTTP request definition, fill in its variables, and send it.",
    add_completion=False,
)

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Module-level defaults for Typer arguments
_FILE_HELP = "Request definition file to send. Without it, choose one interactively."
_ENVIRONMENT_HELP = "Environment to start with: a name, or a path to an environment file."
_BINDING_HELP = "Bind a variable, as NAME=VALUE. Can be given more than once."
_CONFIG_HELP = "Config file to use instead of ~/.config/rhc/config.toml."
_ONLY_BODY_HELP = "Print only the response body."
_VERBOSE_HELP = "Log at DEBUG level."
_NO_INTERACTIVE_HELP = "Fail instead of prompting when a variable has no value."
_NO_HISTORY_HELP = "Neither read nor write the history file."


def _setup_logging(level: str, log_file: Path | None) -> None:
    kwargs: dict = {
        "level": getattr(logging, level.upper(), logging.WARNING),
        "format": _LOG_FORMAT,
    }
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        kwargs["filename"] = str(log_file)
    logging.basicConfig(**kwargs)


@contextmanager
def _log_through_textual() -> Iterator[None]:
    """Swap stderr log handlers for a TextualHandler while the app owns the terminal.

    File handlers are left alone.
    """
    root = logging.getLogger()
    console = [h for h in root.handlers if type(h) is logging.StreamHandler]
    if not console:
        yield
        return
    handler = TextualHandler()
    handler.setFormatter(console[0].formatter)
    handler.setLevel(console[0].level)
    for h in console:
        root.removeHandler(h)
    root.addHandler(handler)
    try:
        yield
    finally:
        root.removeHandler(handler)
        for h in console:
            root.addHandler(h)


def parse_bindings(raw: list[str]) -> dict[str, str]:
    """Turn ``NAME=VALUE`` strings into a dict; the value may contain ``=``."""
    bindings: dict[str, str] = {}
    for item in raw:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(
                f"Expected NAME=VALUE, got {item!r}", param_hint="'--binding' / '-b'"
            )
        bindings[name] = value
    return bindings


def _open_history(config: Config, no_history: bool) -> HistoryStore:
    backend: HistoryBackend = (
        MemoryHistory() if no_history else JsonHistoryFile(config.history_file)
    )
    history = HistoryStore(backend, max_entries=config.max_history_items)
    history.load()
    return history


def _save_history(history: HistoryStore) -> None:
    if not history.dirty:
        return
    try:
        history.persist()
    except OSError as exc:
        logger.error("Could not save history: %s", exc)
        typer.echo(f"Warning: could not save history: {exc}", err=True)


def _run_session(session: Session, no_interactive: bool) -> Outcome:
    """Drive *session* to an outcome, prompting in the terminal if needed."""
    outcome = session.outcome
    if outcome is not None:
        return outcome
    if no_interactive:
        state = session.state
        if isinstance(state, BindingVariable):
            typer.echo(f"Unbound variables: {', '.join(state.queue)}", err=True)
        else:
            typer.echo("A request definition file is required with --no-interactive", err=True)
        sys.exit(1)
    with _log_through_textual():
        result = RhcApp(session).run()
    return result if result is not None else Cancelled()


@app.command()
def main(
    file: Path | None = typer.Argument(None, help=_FILE_HELP),  # noqa: B008
    environment: str | None = typer.Option(  # noqa: B008
        None, "--environment", "-e", help=_ENVIRONMENT_HELP
    ),
    binding: list[str] | None = typer.Option(  # noqa: B008
        None, "--binding", "-b", help=_BINDING_HELP
    ),
    config_path: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", help=_CONFIG_HELP
    ),
    only_body: bool = typer.Option(  # noqa: B008
        False, "--only-body", "-o", help=_ONLY_BODY_HELP
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help=_VERBOSE_HELP),  # noqa: B008
    no_interactive: bool = typer.Option(  # noqa: B008
        False, "--no-interactive", help=_NO_INTERACTIVE_HELP
    ),
    no_history: bool = typer.Option(  # noqa: B008
        False, "--no-history", help=_NO_HISTORY_HELP
    ),
) -> None:
    """Choose a request definition, bind its variables, and send it."""
    cli_bindings = parse_bindings(binding or [])

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    _setup_logging("debug" if verbose else config.log_level, config.log_file)

    environments = list_all_environments(config.environment_directory)
    active: int | None = None
    if environment is not None:
        try:
            active = find_environment(environments, environment)
        except DefinitionError as exc:
            typer.echo(f"Error: {exc}", err=True)
            sys.exit(1)
        if active is None:
            typer.echo(f"Error: no environment named {environment!r}", err=True)
            sys.exit(1)

    if file is not None:
        choice = load_choice(file)
        if choice.error is not None:
            typer.echo(f"Error: {choice.error}", err=True)
            sys.exit(1)
        choices = [choice]
    else:
        choice = None
        choices = list_all_choices(config.request_definition_directory)

    history = _open_history(config, no_history)
    session = Session(choices, environments, history, cli_bindings, active)
    if choice is not None:
        session.begin(choice)

    try:
        outcome = _run_session(session, no_interactive)
    finally:
        _save_history(history)

    if not isinstance(outcome, Confirmed):
        logger.debug("Cancelled; nothing sent")
        return

    try:
        response = send_request(outcome.definition, config)
    except RequestError as exc:
        typer.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    print_response(response, Console(), only_body=only_body, theme=config.theme)


if __name__ == "__main__":
    app()
