"""History of values entered for template variables.

Values are bucketed by (variable name, environment name).  Each bucket lists
distinct values, most recent first.  The whole store shares one recency
order and one size cap: when the cap is exceeded the least recently used
entry across all buckets is evicted.

Schema on disk (``history_file`` in the config, JSON):

    {
        "version": 1,
        "entries": [
            {"variable": "user_id", "environment": "staging", "value": "42", "recency": 0},
            {"variable": "user_id", "environment": null, "value": "7", "recency": 1}
        ]
    }

``recency`` 0 is the most recently used entry.  A ``null`` environment is
the bucket used while no environment is active.
"""

import json
import logging
import tempfile
from collections import OrderedDict
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ValidationError

from rhc.constants import DEFAULT_MAX_HISTORY_ITEMS

logger = logging.getLogger(__name__)

HISTORY_VERSION = 1


class MalformedHistoryStore(Exception):
    """Raised when a history file exists but cannot be parsed or validated."""


class HistoryEntry(BaseModel):
    variable: str
    environment: str | None = None
    value: str
    recency: int = 0


class _HistoryDocument(BaseModel):
    version: int = HISTORY_VERSION
    entries: list[HistoryEntry]


class HistoryBackend(Protocol):
    """Protocol that all history persistence backends must satisfy."""

    def load(self) -> list[HistoryEntry]:
        """Return every stored entry. Raises MalformedHistoryStore on corrupt data."""
        ...

    def persist(self, entries: list[HistoryEntry]) -> None:
        """Replace the stored entries with *entries*."""
        ...


class MemoryHistory:
    """In-memory backend, optionally seeded with entries."""

    def __init__(self, entries: list[HistoryEntry] | None = None) -> None:
        self.entries: list[HistoryEntry] = list(entries or [])
        self.persist_count = 0

    def load(self) -> list[HistoryEntry]:
        return list(self.entries)

    def persist(self, entries: list[HistoryEntry]) -> None:
        self.entries = list(entries)
        self.persist_count += 1


class JsonHistoryFile:
    """Backend storing the history as a JSON document.

    Writes go to a temporary file in the same directory which then replaces
    the target, so an interrupted write leaves the previous file intact.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> list[HistoryEntry]:
        if not self.path.exists():
            return []
        try:
            raw: object = json.loads(self.path.read_text())
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedHistoryStore(f"{self.path} is not valid JSON: {exc}") from exc
        try:
            document = _HistoryDocument.model_validate(raw)
        except ValidationError as exc:
            raise MalformedHistoryStore(f"{self.path} has an invalid layout: {exc}") from exc
        if document.version != HISTORY_VERSION:
            raise MalformedHistoryStore(
                f"{self.path} has unsupported version {document.version}"
            )
        return document.entries

    def persist(self, entries: list[HistoryEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = _HistoryDocument(entries=entries).model_dump_json(indent=2)
        f = tempfile.NamedTemporaryFile(
            mode="w",
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp = Path(f.name)
        try:
            with f:
                f.write(payload)
            tmp.replace(self.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise


# (variable, environment, value)
_Key = tuple[str, str | None, str]


class HistoryStore:
    """Bounded, recency-ordered store of previously entered values.

    Args:
        backend: Where entries are loaded from and persisted to.
        max_entries: Global cap on the number of stored entries.
    """

    def __init__(
        self,
        backend: HistoryBackend | None = None,
        max_entries: int = DEFAULT_MAX_HISTORY_ITEMS,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._backend: HistoryBackend = backend if backend is not None else MemoryHistory()
        self._max_entries = max_entries
        # Least recently used first, most recently used last.
        self._entries: OrderedDict[_Key, None] = OrderedDict()
        self.dirty = False

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def lookup(self, variable: str, environment: str | None) -> list[str]:
        """Return the values recorded for this bucket, most recent first."""
        return [
            value
            for var, env, value in reversed(self._entries)
            if var == variable and env == environment
        ]

    def record(self, variable: str, environment: str | None, value: str) -> None:
        """Insert *value* at the front of its bucket, or promote it if present."""
        key = (variable, environment, value)
        if key in self._entries:
            self._entries.move_to_end(key)
        else:
            self._entries[key] = None
            if len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted history entry %s", evicted)
        self.dirty = True

    def entries(self) -> list[HistoryEntry]:
        """Export every entry, most recent first."""
        return [
            HistoryEntry(variable=var, environment=env, value=value, recency=rank)
            for rank, (var, env, value) in enumerate(reversed(self._entries))
        ]

    def load(self) -> None:
        """Replace the in-memory entries with the backend's contents.

        A missing or malformed store leaves the history empty; the session
        carries on without it.
        """
        self._entries.clear()
        self.dirty = False
        try:
            loaded = self._backend.load()
        except MalformedHistoryStore as exc:
            logger.warning("Ignoring history: %s", exc)
            return
        # Oldest first, so the most recent entry ends up last.
        for entry in sorted(loaded, key=lambda e: e.recency, reverse=True):
            key = (entry.variable, entry.environment, entry.value)
            self._entries[key] = None
            self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
        logger.debug("Loaded %d history entries", len(self._entries))

    def persist(self) -> None:
        """Write every entry to the backend and clear the dirty flag."""
        self._backend.persist(self.entries())
        self.dirty = False
