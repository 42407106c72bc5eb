"""Config file loading and validation.

Schema on disk (~/.config/rhc/config.toml):

    request_definition_directory = "~/rhc/definitions"
    environment_directory = "~/rhc/environments"
    history_file = "~/.rhc_history.json"
    max_history_items = 1000
    theme = "monokai"
    connect_timeout_seconds = 5
    read_timeout_seconds = 30
    timeout_seconds = 30
    log_level = "warning"
    log_file = "~/.rhc.log"

Every key is optional.
"""

import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rhc.constants import (
    DEFAULT_DEFINITION_DIRECTORY,
    DEFAULT_ENVIRONMENT_DIRECTORY,
    DEFAULT_HISTORY_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_HISTORY_ITEMS,
    DEFAULT_THEME,
)

CONFIG_PATH = Path("~/.config/rhc/config.toml").expanduser()

_README_PATH = Path("~/.config/rhc/README.md").expanduser()

_DEFAULT_CONFIG = f"""\
request_definition_directory = "{DEFAULT_DEFINITION_DIRECTORY}"
environment_directory = "{DEFAULT_ENVIRONMENT_DIRECTORY}"
history_file = "{DEFAULT_HISTORY_FILE}"
max_history_items = {DEFAULT_MAX_HISTORY_ITEMS}
"""

_README_CONTENT = """\
# rhc configuration

Edit `config.toml` in this directory to tell rhc where your request
definitions and environments live.

## Keys

| key | meaning |
|---|---|
| `request_definition_directory` | directory searched (recursively) for `*.toml` request definitions |
| `environment_directory` | directory holding `*.toml` environment files |
| `history_file` | JSON file where entered variable values are remembered |
| `max_history_items` | total number of remembered values |
| `theme` | syntax theme used for JSON response bodies |
| `connect_timeout_seconds` / `read_timeout_seconds` | request timeouts |
| `timeout_seconds` | timeout used where the two above are unset |
| `colors` | accepted but ignored; the UI colours come from the built-in stylesheet |
| `log_level` / `log_file` | logging verbosity and destination (stderr if unset) |

## Example definition

```toml
[request]
method = "GET"
url = "https://{host}/users/{user_id}"

[headers]
headers = [{ name = "Authorization", value = "Bearer {token}" }]
```

## Example environment

```toml
name = "staging"
variables = [
    { name = "host", value = "staging.example.com" },
]
```
"""


class Config(BaseModel):
    """Validated contents of config.toml."""

    model_config = ConfigDict(extra="forbid", validate_default=True)

    request_definition_directory: Path = Path(DEFAULT_DEFINITION_DIRECTORY)
    environment_directory: Path = Path(DEFAULT_ENVIRONMENT_DIRECTORY)
    history_file: Path = Path(DEFAULT_HISTORY_FILE)
    max_history_items: int = Field(default=DEFAULT_MAX_HISTORY_ITEMS, ge=1)
    theme: str = DEFAULT_THEME
    connect_timeout_seconds: float | None = Field(default=None, gt=0)
    read_timeout_seconds: float | None = Field(default=None, gt=0)
    # Fallback for whichever of the two above is unset.
    timeout_seconds: float | None = Field(default=None, gt=0)
    # Older configs may carry a colour table; the UI is styled by app.tcss instead.
    colors: dict[str, str] | None = None
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Path | None = None

    @field_validator(
        "request_definition_directory", "environment_directory", "history_file", "log_file"
    )
    @classmethod
    def _expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None

    @property
    def timeout(self) -> tuple[float | None, float | None] | None:
        """Timeout in the form ``requests`` expects, or None for no timeout."""
        connect = self.connect_timeout_seconds
        read = self.read_timeout_seconds
        if connect is None:
            connect = self.timeout_seconds
        if read is None:
            read = self.timeout_seconds
        if connect is None and read is None:
            return None
        return (connect, read)


class ConfigError(Exception):
    """Raised when config.toml exists but cannot be parsed or validated."""


def load_config(path: Path | None = None) -> Config:
    """Load and validate the config file.

    With no explicit *path*, creates the config directory, a default
    config.toml and a README on first run and returns the defaults.  An
    explicit *path* that does not exist is an error.  Raises ConfigError if
    the file exists but is malformed.
    """
    if path is None:
        path = CONFIG_PATH
        if not path.exists():
            _bootstrap()
            return Config()
    elif not path.exists():
        raise ConfigError(f"Config file {path} does not exist")

    try:
        raw = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path.name} is not valid TOML: {exc}") from exc

    try:
        return Config.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {path}: {exc}") from exc


def _bootstrap() -> None:
    """Create the config directory, a default config.toml, and a README."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(_DEFAULT_CONFIG)
    if not _README_PATH.exists():
        _README_PATH.write_text(_README_CONTENT)
