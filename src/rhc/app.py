"""Interactive terminal front end for a ``Session``."""

import logging

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, Static

from rhc.constants import APP_TITLE, CHOICE_COLUMNS, HISTORY_COLUMNS, NO_ENVIRONMENT, PROMPT
from rhc.models import Choice
from rhc.screens.help import HelpScreen
from rhc.session import (
    Backspace,
    BindingVariable,
    Character,
    ClearQuery,
    Confirm,
    CutWord,
    CycleEnvironment,
    Event,
    HistoryPrompt,
    MoveDown,
    MoveUp,
    Outcome,
    Quit,
    SelectingDefinition,
    Session,
    SwitchMode,
)
from rhc.widgets.choice_table import BROKEN_BADGE, ChoiceTable
from rhc.widgets.env_tabs import EnvTabs
from rhc.widgets.main_view import MainView

logger = logging.getLogger(__name__)


class RhcApp(App[Outcome]):
    """rhc: pick a request definition, fill in its variables, and send it.

    Every key press becomes one session event.  After each event the app
    redraws from ``session.state``, saves the history if it changed, and
    exits with the outcome once the session terminates.
    """

    CSS_PATH = "app.tcss"
    TITLE = APP_TITLE
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("enter", "send('Confirm')", "Select", priority=True),
        Binding("tab", "tab(1)", "Env / History", priority=True),
        Binding("shift+tab", "tab(-1)", show=False, priority=True),
        Binding("ctrl+n", "cycle_env(1)", "Next env", priority=True),
        Binding("ctrl+p", "cycle_env(-1)", "Prev env", priority=True),
        Binding("up,ctrl+k", "send('MoveUp')", show=False, priority=True),
        Binding("down,ctrl+j", "send('MoveDown')", show=False, priority=True),
        Binding("backspace", "send('Backspace')", show=False, priority=True),
        Binding("ctrl+w", "send('CutWord')", show=False, priority=True),
        Binding("ctrl+u", "send('ClearQuery')", show=False, priority=True),
        Binding("ctrl+c", "send('Quit')", "Quit", priority=True),
        Binding("escape", "send('Quit')", show=False, priority=True),
        Binding("f1", "toggle_help", "Help"),
    ]

    _SIMPLE_EVENTS = {
        "Confirm": Confirm,
        "MoveUp": MoveUp,
        "MoveDown": MoveDown,
        "Backspace": Backspace,
        "CutWord": CutWord,
        "ClearQuery": ClearQuery,
        "Quit": Quit,
    }

    def __init__(self, session: Session) -> None:
        super().__init__()
        self.session = session

    def compose(self) -> ComposeResult:
        yield Header()
        yield EnvTabs(
            [env.name for env in self.session.environments],
            active_slot=self._active_slot(),
            id="env-tabs",
        )
        yield MainView(id="main")
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_view()

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Leave keys to the help overlay while it is open."""
        if action != "toggle_help" and self._help_open():
            return False
        return True

    def on_key(self, event: events.Key) -> None:
        if self._help_open():
            return
        if event.is_printable and event.character:
            event.stop()
            self.apply_event(Character(event.character))

    # Actions

    def action_send(self, name: str) -> None:
        self.apply_event(self._SIMPLE_EVENTS[name]())

    def action_tab(self, step: int) -> None:
        """Cycle environments while choosing, toggle history while binding."""
        if isinstance(self.session.state, BindingVariable):
            self.apply_event(SwitchMode())
        else:
            self.apply_event(CycleEnvironment(step))

    def action_cycle_env(self, step: int) -> None:
        self.apply_event(CycleEnvironment(step))

    def action_toggle_help(self) -> None:
        if self._help_open():
            self.pop_screen()
        else:
            self.push_screen(HelpScreen())

    # Session plumbing

    def apply_event(self, event: Event) -> None:
        """Feed *event* to the session, then save history and redraw or exit."""
        self.session.handle(event)
        self._persist_history()
        outcome = self.session.outcome
        if outcome is not None:
            self.exit(outcome)
            return
        self._refresh_view()

    def _persist_history(self) -> None:
        history = self.session.history
        if not history.dirty:
            return
        try:
            history.persist()
        except OSError as exc:
            logger.error("Could not save history: %s", exc)
            self.notify(f"Could not save history: {exc}", severity="error", timeout=8)

    def _help_open(self) -> bool:
        return isinstance(self.screen, HelpScreen)

    def _active_slot(self) -> int:
        index = self.session.active_index
        return 0 if index is None else index + 1

    def _get_table(self) -> ChoiceTable:
        return self.query_one("#choices", ChoiceTable)

    def _choice_row(self, choice: Choice) -> tuple[str | Text, ...]:
        if choice.definition is None:
            return (choice.name, BROKEN_BADGE, "")
        return (choice.name, self.session.display_url(choice), choice.description or "")

    def _refresh_view(self) -> None:
        """Redraw every widget from the session state."""
        session = self.session
        state = session.state
        self.query_one("#env-tabs", EnvTabs).active_slot = self._active_slot()
        env_label = session.environment_key or NO_ENVIRONMENT
        self.sub_title = f"[{env_label}]"

        explanation = self.query_one("#explanation", Static)
        prompt = self.query_one("#prompt", Static)
        table = self._get_table()

        if isinstance(state, SelectingDefinition):
            rows = [self._choice_row(c) for c in session.visible_choices()]
            table.show(CHOICE_COLUMNS, rows, state.highlighted)
            explanation.update(f"{len(rows)}/{len(session.choices)} definitions")
            prompt.update(Text(PROMPT + state.query))
            prompt.remove_class("history")
        elif isinstance(state, BindingVariable):
            in_history = isinstance(state.prompt, HistoryPrompt)
            highlighted = state.prompt.highlighted if in_history else None
            table.show(
                HISTORY_COLUMNS,
                [(value,) for value in session.history_preview()],
                highlighted,
            )
            if state.current is None:
                explanation.update("All variables have values. Press Enter to send.")
            else:
                remaining = len(state.queue) - 1
                text = Text.assemble(
                    f"{state.choice.name}: enter a value for ", (state.current, "bold cyan")
                )
                if remaining:
                    text.append(f"  ({remaining} more after this)")
                if in_history:
                    text.append("  [history]", style="italic")
                explanation.update(text)
            prompt.update(Text(PROMPT + state.prompt.buffer))
            prompt.set_class(in_history, "history")

        if session.message:
            explanation.update(Text(session.message))
            explanation.add_class("error")
        else:
            explanation.remove_class("error")
