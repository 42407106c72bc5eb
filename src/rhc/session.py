"""Interactive session state machine.

The session turns a stream of input events into one of two outcomes: a fully
rendered request definition (``Confirmed``) or ``Cancelled``.  It does no I/O;
the terminal layer feeds it events through ``Session.handle`` and draws
whatever ``Session.state`` holds afterwards.

States:

- ``SelectingDefinition``: the user filters the definition list and picks one.
- ``BindingVariable``: the user supplies values for the variables that the
  command line and the active environment left unresolved, one at a time.
- ``Terminated``: absorbing; carries the outcome.

The active environment can be cycled in either of the first two states.
While binding variables this re-runs resolution: a variable whose value came
only from the previous environment goes back to the front of the queue.
"""

import logging
from dataclasses import dataclass, field

from rhc.domain import fuzzy
from rhc.domain.resolver import BindingResolver
from rhc.domain.templating import UnresolvedVariable, extract_variables, render, substitute
from rhc.history import HistoryStore
from rhc.models import Choice, Environment, RequestDefinition

logger = logging.getLogger(__name__)


# Input events


@dataclass(frozen=True)
class Character:
    text: str


@dataclass(frozen=True)
class Backspace:
    pass


@dataclass(frozen=True)
class CutWord:
    """Delete back to the start of the previous word (readline ctrl+w)."""


@dataclass(frozen=True)
class ClearQuery:
    pass


@dataclass(frozen=True)
class MoveUp:
    pass


@dataclass(frozen=True)
class MoveDown:
    pass


@dataclass(frozen=True)
class SwitchMode:
    """Toggle between typing a value and picking one from history."""


@dataclass(frozen=True)
class CycleEnvironment:
    step: int = 1


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class Quit:
    pass


Event = (
    Character
    | Backspace
    | CutWord
    | ClearQuery
    | MoveUp
    | MoveDown
    | SwitchMode
    | CycleEnvironment
    | Confirm
    | Quit
)

_EDIT_EVENTS = (Character, Backspace, CutWord, ClearQuery)


# Outcomes


@dataclass(frozen=True)
class Confirmed:
    definition: RequestDefinition
    environment: Environment | None


@dataclass(frozen=True)
class Cancelled:
    pass


Outcome = Confirmed | Cancelled


# Prompt modes while binding a variable


@dataclass
class EntryPrompt:
    buffer: str = ""


@dataclass
class HistoryPrompt:
    """Picking a previous value; ``view`` is the history filtered by ``buffer``."""

    buffer: str
    view: list[str] = field(default_factory=list)
    highlighted: int | None = None


Prompt = EntryPrompt | HistoryPrompt


# States


@dataclass
class SelectingDefinition:
    """``view`` holds indexes into ``Session.choices``, best match first."""

    query: str = ""
    view: list[int] = field(default_factory=list)
    highlighted: int | None = None


@dataclass
class BindingVariable:
    """Collecting values for ``queue``; the front of the queue is being prompted.

    An empty queue means every variable is resolved and the next Confirm
    renders the request.
    """

    choice: Choice
    definition: RequestDefinition
    required: list[str]
    queue: list[str]
    prompt: Prompt = field(default_factory=EntryPrompt)

    @property
    def current(self) -> str | None:
        return self.queue[0] if self.queue else None


@dataclass(frozen=True)
class Terminated:
    outcome: Outcome


State = SelectingDefinition | BindingVariable | Terminated


def cut_to_word_start(text: str) -> str:
    """Like readline ctrl+w: drop trailing spaces, then the last word."""
    stripped = text.rstrip(" ")
    return stripped[: stripped.rfind(" ") + 1]


def edit_text(text: str, event: Event) -> str:
    """Apply a line-editing event to *text*."""
    if isinstance(event, Character):
        return text + event.text
    if isinstance(event, Backspace):
        return text[:-1]
    if isinstance(event, CutWord):
        return cut_to_word_start(text)
    if isinstance(event, ClearQuery):
        return ""
    return text


def _clamp(highlighted: int | None, size: int) -> int | None:
    if size == 0:
        return None
    if highlighted is None:
        return 0
    return min(max(highlighted, 0), size - 1)


def _step(highlighted: int | None, size: int, delta: int) -> int | None:
    """Move the highlight by *delta*, stopping at either end of the list."""
    if highlighted is None:
        return _clamp(None, size)
    return _clamp(highlighted + delta, size)


class Session:
    """One interactive run, from choosing a definition to its outcome.

    Args:
        choices: Definitions offered for selection, in display order.
        environments: Environments the user can cycle through.
        history: Store of previously entered values; updated on every
            confirmed variable.
        cli_bindings: Values fixed on the command line; never prompted for.
        active_environment: Index into *environments* to start with, or
            None for no environment.
    """

    def __init__(
        self,
        choices: list[Choice],
        environments: list[Environment],
        history: HistoryStore,
        cli_bindings: dict[str, str] | None = None,
        active_environment: int | None = None,
    ) -> None:
        if active_environment is not None and not 0 <= active_environment < len(environments):
            raise IndexError(f"No environment at index {active_environment}")
        self.choices = list(choices)
        self.environments = list(environments)
        self.history = history
        self.resolver = BindingResolver(cli_bindings)
        self.message: str | None = None
        self._active_index = active_environment
        self.state: State = SelectingDefinition()
        self._refilter(self.state)

    # Environment

    @property
    def active_index(self) -> int | None:
        return self._active_index

    @property
    def active_environment(self) -> Environment | None:
        if self._active_index is None:
            return None
        return self.environments[self._active_index]

    @property
    def environment_key(self) -> str | None:
        """History bucket for the active environment."""
        env = self.active_environment
        return env.name if env is not None else None

    @property
    def environment_variables(self) -> dict[str, str]:
        env = self.active_environment
        return env.as_dict() if env is not None else {}

    # Queries used for display

    @property
    def outcome(self) -> Outcome | None:
        if isinstance(self.state, Terminated):
            return self.state.outcome
        return None

    def display_url(self, choice: Choice) -> str:
        """URL of *choice* with the active environment's values filled in."""
        return substitute(choice.url, self.environment_variables)

    def search_text(self, choice: Choice) -> str:
        parts = [choice.name, self.display_url(choice)]
        if choice.description:
            parts.append(choice.description)
        return " ".join(parts)

    def visible_choices(self) -> list[Choice]:
        if not isinstance(self.state, SelectingDefinition):
            return []
        return [self.choices[i] for i in self.state.view]

    def history_preview(self) -> list[str]:
        """Remembered values for the variable being prompted, filtered by the buffer.

        In history mode this is the selectable view; in entry mode it is shown
        for reference only.
        """
        state = self.state
        if not isinstance(state, BindingVariable) or state.current is None:
            return []
        if isinstance(state.prompt, HistoryPrompt):
            return list(state.prompt.view)
        values = self.history.lookup(state.current, self.environment_key)
        return fuzzy.match(state.prompt.buffer, values)

    # Transitions

    def handle(self, event: Event) -> State:
        """Apply one input event and return the resulting state."""
        if isinstance(self.state, Terminated):
            return self.state
        self.message = None

        if isinstance(event, Quit):
            logger.debug("Session cancelled")
            self.state = Terminated(Cancelled())
        elif isinstance(event, CycleEnvironment):
            self._cycle_environment(event.step)
        elif isinstance(self.state, SelectingDefinition):
            self._handle_selecting(self.state, event)
        else:
            self._handle_binding(self.state, event)
        return self.state

    def begin(self, choice: Choice) -> State:
        """Start binding the variables of *choice*.

        This is what confirming a row of the definition list does; it can
        also be called directly when the definition was chosen up front.
        A definition that needs no prompting terminates immediately.
        """
        if choice.definition is None:
            self.message = choice.error or f"{choice.name} could not be loaded"
            return self.state
        required = extract_variables(choice.definition)
        resolution = self.resolver.resolve(required, self.environment_variables)
        state = BindingVariable(
            choice=choice,
            definition=choice.definition,
            required=required,
            queue=resolution.unresolved,
        )
        logger.debug(
            "Selected %s; variables %s, unresolved %s", choice.name, required, state.queue
        )
        if state.queue:
            self.state = state
        else:
            self._complete(state)
        return self.state

    def _handle_selecting(self, state: SelectingDefinition, event: Event) -> None:
        if isinstance(event, _EDIT_EVENTS):
            state.query = edit_text(state.query, event)
            self._refilter(state)
        elif isinstance(event, MoveUp):
            state.highlighted = _step(state.highlighted, len(state.view), -1)
        elif isinstance(event, MoveDown):
            state.highlighted = _step(state.highlighted, len(state.view), 1)
        elif isinstance(event, Confirm):
            if state.highlighted is None:
                return
            self.begin(self.choices[state.view[state.highlighted]])

    def _handle_binding(self, state: BindingVariable, event: Event) -> None:
        prompt = state.prompt
        if isinstance(event, _EDIT_EVENTS):
            prompt.buffer = edit_text(prompt.buffer, event)
            if isinstance(prompt, HistoryPrompt):
                self._refilter_history(state, prompt)
        elif isinstance(event, SwitchMode):
            if state.current is None:
                return
            if isinstance(prompt, EntryPrompt):
                state.prompt = HistoryPrompt(buffer=prompt.buffer)
                self._refilter_history(state, state.prompt)
            else:
                state.prompt = EntryPrompt(buffer=prompt.buffer)
        elif isinstance(event, (MoveUp, MoveDown)):
            if isinstance(prompt, HistoryPrompt):
                delta = -1 if isinstance(event, MoveUp) else 1
                prompt.highlighted = _step(prompt.highlighted, len(prompt.view), delta)
        elif isinstance(event, Confirm):
            self._confirm_value(state)

    def _confirm_value(self, state: BindingVariable) -> None:
        if state.current is None:
            self._complete(state)
            return

        prompt = state.prompt
        if isinstance(prompt, HistoryPrompt):
            if prompt.highlighted is None:
                return
            value = prompt.view[prompt.highlighted]
        else:
            value = prompt.buffer

        name = state.queue.pop(0)
        self.history.record(name, self.environment_key, value)
        self.resolver.bind(name, value)
        state.prompt = EntryPrompt()
        if not state.queue:
            self._complete(state)

    def _complete(self, state: BindingVariable) -> None:
        """Render the chosen definition and terminate.

        If rendering finds a variable without a value, stay in
        BindingVariable with the missing names at the front of the queue.
        """
        resolution = self.resolver.resolve(state.required, self.environment_variables)
        try:
            rendered = render(state.definition, resolution.values)
        except UnresolvedVariable as exc:
            logger.error("Cannot render %s: %s", state.choice.name, exc)
            self.message = str(exc)
            state.queue = exc.names + [n for n in state.queue if n not in exc.names]
            state.prompt = EntryPrompt()
            self.state = state
            return
        logger.debug("Rendered %s", state.choice.name)
        self.state = Terminated(Confirmed(rendered, self.active_environment))

    def _cycle_environment(self, step: int) -> None:
        if not self.environments:
            return
        slots = len(self.environments) + 1
        position = 0 if self._active_index is None else self._active_index + 1
        position = (position + step) % slots
        self._active_index = None if position == 0 else position - 1
        logger.debug("Active environment is now %s", self.environment_key)

        if isinstance(self.state, SelectingDefinition):
            self._refilter(self.state)
        elif isinstance(self.state, BindingVariable):
            self._reresolve(self.state)

    def _reresolve(self, state: BindingVariable) -> None:
        previous = state.current
        unresolved = self.resolver.resolve(state.required, self.environment_variables).unresolved
        newly_unresolved = [n for n in unresolved if n not in state.queue]
        still_queued = [n for n in state.queue if n in unresolved]
        state.queue = newly_unresolved + still_queued
        if newly_unresolved:
            logger.debug("Environment change unresolved %s", newly_unresolved)

        if state.current != previous:
            state.prompt = EntryPrompt()
        elif isinstance(state.prompt, HistoryPrompt):
            self._refilter_history(state, state.prompt)

    def _refilter(self, state: SelectingDefinition) -> None:
        targets = [self.search_text(c) for c in self.choices]
        state.view = fuzzy.match_indices(state.query, targets)
        state.highlighted = _clamp(state.highlighted, len(state.view))

    def _refilter_history(self, state: BindingVariable, prompt: HistoryPrompt) -> None:
        if state.current is None:
            prompt.view = []
        else:
            values = self.history.lookup(state.current, self.environment_key)
            prompt.view = fuzzy.match(prompt.buffer, values)
        prompt.highlighted = _clamp(prompt.highlighted, len(prompt.view))
