"""Variable resolution across layered binding sources.

Precedence, highest first: command-line bindings, the active environment,
then values entered interactively during the session.  Resolution is
recomputed from scratch on every call; nothing is cached between calls, so
switching the active environment can never leave a stale value behind.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a definition's variables.

    ``unresolved`` keeps the order of the ``required`` names it came from.
    """

    values: dict[str, str] = field(default_factory=dict)
    unresolved: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.unresolved


def resolve(
    required: Sequence[str],
    cli: Mapping[str, str],
    environment: Mapping[str, str],
    interactive: Mapping[str, str],
) -> Resolution:
    """Resolve every name in *required* against the three binding sources."""
    values: dict[str, str] = {}
    unresolved: list[str] = []
    for name in dict.fromkeys(required):
        for source in (cli, environment, interactive):
            if name in source:
                values[name] = source[name]
                break
        else:
            unresolved.append(name)
    return Resolution(values=values, unresolved=unresolved)


class BindingResolver:
    """Per-session resolver state: fixed CLI bindings plus interactive entries."""

    def __init__(self, cli: Mapping[str, str] | None = None) -> None:
        self._cli: dict[str, str] = dict(cli or {})
        self._interactive: dict[str, str] = {}

    @property
    def cli(self) -> dict[str, str]:
        return dict(self._cli)

    @property
    def interactive(self) -> dict[str, str]:
        return dict(self._interactive)

    def bind(self, name: str, value: str) -> None:
        """Record a value the user confirmed for *name*."""
        self._interactive[name] = value

    def resolve(self, required: Sequence[str], environment: Mapping[str, str]) -> Resolution:
        return resolve(required, self._cli, environment, self._interactive)
