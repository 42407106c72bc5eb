"""Loading request definitions and environments from TOML files."""

import logging
import tomllib
from collections import Counter
from pathlib import Path

from pydantic import ValidationError

from rhc.models import Choice, Environment, RequestDefinition

logger = logging.getLogger(__name__)


class DefinitionError(Exception):
    """Raised when a definition or environment file cannot be loaded."""


def _read_toml(path: Path, file_desc: str) -> dict:
    try:
        return tomllib.loads(path.read_text())
    except (OSError, UnicodeDecodeError) as exc:
        raise DefinitionError(f"Could not read {file_desc} file at {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise DefinitionError(f"Failed to parse {file_desc} file at {path}: {exc}") from exc


def load_definition(path: Path) -> RequestDefinition:
    """Parse and validate a single request definition file."""
    raw = _read_toml(path, "request definition")
    try:
        return RequestDefinition.model_validate(raw)
    except ValidationError as exc:
        raise DefinitionError(f"Invalid request definition file at {path}: {exc}") from exc


def load_environment(path: Path) -> Environment:
    """Parse and validate a single environment file.

    Duplicate variable names within one environment are rejected.
    """
    raw = _read_toml(path, "environment")
    try:
        environment = Environment.model_validate(raw)
    except ValidationError as exc:
        raise DefinitionError(f"Invalid environment file at {path}: {exc}") from exc

    counts = Counter(v.name for v in environment.variables)
    dupes = sorted(name for name, count in counts.items() if count > 1)
    if dupes:
        raise DefinitionError(
            f"The environment file {path} contains duplicate bindings for: {', '.join(dupes)}"
        )
    return environment


def _display_name(path: Path, base: Path, definition: RequestDefinition | None) -> str:
    if definition is not None and definition.metadata is not None and definition.metadata.name:
        return definition.metadata.name
    try:
        relative = path.relative_to(base)
    except ValueError:
        relative = path
    return str(relative.with_suffix(""))


def load_choice(path: Path, base: Path | None = None) -> Choice:
    """Load *path* into a Choice, capturing a parse failure instead of raising."""
    base = base if base is not None else path.parent
    try:
        definition = load_definition(path)
    except DefinitionError as exc:
        logger.warning("%s", exc)
        return Choice(path=path, name=_display_name(path, base, None), error=str(exc))
    return Choice(path=path, name=_display_name(path, base, definition), definition=definition)


def list_all_choices(directory: Path) -> list[Choice]:
    """Load every ``*.toml`` definition under *directory*, sorted by path.

    Files that fail to parse still appear, carrying their error, so one bad
    file does not make the rest unusable.
    """
    if not directory.is_dir():
        logger.warning("Definition directory %s does not exist", directory)
        return []
    paths = sorted(p for p in directory.rglob("*.toml") if p.is_file())
    return [load_choice(p, directory) for p in paths]


def list_all_environments(directory: Path) -> list[Environment]:
    """Load every ``*.toml`` environment in *directory*, sorted by file name.

    Unparseable files are skipped with a warning.
    """
    if not directory.is_dir():
        logger.debug("Environment directory %s does not exist", directory)
        return []
    environments: list[Environment] = []
    for path in sorted(directory.glob("*.toml")):
        try:
            environments.append(load_environment(path))
        except DefinitionError as exc:
            logger.warning("Skipping environment: %s", exc)
    return environments


def find_environment(environments: list[Environment], name_or_path: str) -> int | None:
    """Return the index of the environment named *name_or_path*.

    If no environment has that name and *name_or_path* is an existing file,
    it is loaded, appended to *environments*, and its index returned.
    """
    for i, environment in enumerate(environments):
        if environment.name == name_or_path:
            return i
    path = Path(name_or_path).expanduser()
    if path.is_file():
        environment = load_environment(path)
        for i, existing in enumerate(environments):
            if existing.name == environment.name:
                environments[i] = environment
                return i
        environments.append(environment)
        return len(environments) - 1
    return None
