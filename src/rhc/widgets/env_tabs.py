"""Horizontal environment indicator bar (read-only)."""

from textual.app import ComposeResult
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

from rhc.constants import NO_ENVIRONMENT


def _tab_id(slot: int) -> str:
    return f"tab-{slot}"


class EnvTabs(Widget):
    """A read-only bar listing the environments with the active one highlighted.

    Renders as:  env ▸  none  [staging]  production

    Slot 0 is the "no environment" entry; slot ``i + 1`` is environment
    ``i``.  ``active_slot`` is kept in sync by the app; when it changes the
    bar re-highlights in place.
    """

    DEFAULT_CSS = """
    EnvTabs {
        height: 1;
        layout: horizontal;
        background: $panel;
    }
    EnvTabs .tab-label {
        width: auto;
        padding: 0 1;
        color: $text-muted;
    }
    EnvTabs .tab {
        width: auto;
        padding: 0 1;
    }
    EnvTabs .tab.active {
        background: $accent;
        color: $text;
        text-style: bold;
    }
    """

    can_focus = False

    active_slot: reactive[int] = reactive(0, init=False)

    def __init__(
        self,
        environments: list[str],
        active_slot: int = 0,
        *,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(id=id, classes=classes)
        self._labels = [NO_ENVIRONMENT, *environments]
        self.set_reactive(EnvTabs.active_slot, active_slot)

    def compose(self) -> ComposeResult:
        yield Static("env ▸", classes="tab-label")
        for slot, label in enumerate(self._labels):
            yield Static(
                label,
                id=_tab_id(slot),
                classes="tab active" if slot == self.active_slot else "tab",
            )

    def watch_active_slot(self, slot: int) -> None:
        """Highlight the active environment tab."""
        active_id = _tab_id(slot)
        for tab in self.query(".tab"):
            if tab.id == active_id:
                tab.add_class("active")
            else:
                tab.remove_class("active")
