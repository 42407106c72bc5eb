"""Main view: choice table above an explanation line and the prompt."""

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Static

from rhc.widgets.choice_table import ChoiceTable


class MainView(Vertical):
    """Composes the choice table, the explanation line and the prompt line."""

    def compose(self) -> ComposeResult:
        yield ChoiceTable(id="choices")
        yield Static("", id="explanation")
        yield Static("", id="prompt")
