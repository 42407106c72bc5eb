"""Table of selectable rows: request definitions or remembered values."""

from rich.text import Text
from textual.widgets import DataTable

BROKEN_BADGE = Text("(could not parse definition file)", style="italic red")


class ChoiceTable(DataTable):
    """Read-only table whose highlighted row is driven by the session.

    The table never takes focus: every key goes to the app, which turns it
    into a session event and then calls ``show`` with the new rows.  A
    ``highlighted`` of None hides the cursor (nothing can be selected).
    """

    can_focus = False

    def __init__(self, *, id: str | None = None, classes: str | None = None) -> None:
        super().__init__(id=id, classes=classes, cursor_type="row", zebra_stripes=True)
        self._shown_columns: tuple[str, ...] = ()

    def show(
        self,
        columns: tuple[str, ...],
        rows: list[tuple[str | Text, ...]],
        highlighted: int | None,
    ) -> None:
        """Replace the table contents and move the cursor to *highlighted*."""
        if columns != self._shown_columns:
            self.clear(columns=True)
            self.add_columns(*columns)
            self._shown_columns = columns
        else:
            self.clear()
        for row in rows:
            self.add_row(*row)
        self.show_cursor = highlighted is not None
        if highlighted is not None:
            self.move_cursor(row=highlighted)
