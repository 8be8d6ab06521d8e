"""Modal dialogs: console fallback, console choice and history browser."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, ListItem, ListView, Static

from ..history import HistoryEntry

DIALOG_CSS = """
    {name} {{
        align: center middle;
    }}

    .dialog-container {{
        width: 64;
        height: auto;
        max-height: 30;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }}

    .dialog-title {{
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }}

    .button-row {{
        margin-top: 1;
        height: 3;
        align: center middle;
    }}

    .button-row Button {{
        margin: 0 1;
        min-width: 12;
    }}
"""


class ConsoleFallbackModal(ModalScreen[bool]):
    """Asks whether to continue with a non-privileged console."""

    BINDINGS = [
        Binding("escape", "abort", "Abort", show=False),
    ]

    CSS = DIALOG_CSS.format(name="ConsoleFallbackModal")

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog-container"):
            yield Static("CONSOLE UNAVAILABLE", classes="dialog-title")
            yield Label(
                "The privileged console could not be created. "
                "Switch to a non-privileged console? Choosing No exits."
            )
            with Horizontal(classes="button-row"):
                yield Button("Yes", id="fallback-btn", variant="primary")
                yield Button("No", id="abort-btn", variant="error")

    def on_mount(self) -> None:
        self.query_one("#fallback-btn", Button).focus()

    def action_abort(self) -> None:
        self.dismiss(False)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "fallback-btn")


class ChooseConsoleModal(ModalScreen[bool | None]):
    """Lets the user pick the privileged or non-privileged console.

    Dismisses with True for privileged, False for non-privileged and None
    when cancelled.
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    CSS = DIALOG_CSS.format(name="ChooseConsoleModal")

    def __init__(self, privileged: bool) -> None:
        super().__init__()
        self.privileged = privileged

    def compose(self) -> ComposeResult:
        current = "privileged" if self.privileged else "non-privileged"
        with Vertical(classes="dialog-container"):
            yield Static("CHOOSE CONSOLE", classes="dialog-title")
            yield Label(f"Current console: {current}")
            with Horizontal(classes="button-row"):
                yield Button("Non-privileged", id="unprivileged-btn", variant="primary")
                yield Button("Privileged", id="privileged-btn", variant="warning")
                yield Button("Cancel", id="cancel-btn")

    def action_cancel(self) -> None:
        self.dismiss(None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel-btn":
            self.dismiss(None)
        else:
            self.dismiss(event.button.id == "privileged-btn")


class HistoryItem(ListItem):
    """A list item representing a history entry."""

    def __init__(self, entry: HistoryEntry) -> None:
        super().__init__()
        self.entry = entry

    def compose(self) -> ComposeResult:
        yield Label(f"{self.entry.position:>3}  {self.entry.title}")


class HistoryModal(ModalScreen):
    """Shows the navigation history, newest first.

    Dismisses with the selected `HistoryEntry`, the string ``"clear"`` when
    the history should be cleared, or None when cancelled.
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    CSS = DIALOG_CSS.format(name="HistoryModal") + """
    #history-list-view {
        height: auto;
        max-height: 18;
    }
    """

    def __init__(self, entries: list[HistoryEntry]) -> None:
        super().__init__()
        self.entries = entries

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog-container"):
            yield Static("HISTORY", classes="dialog-title")
            if self.entries:
                yield ListView(
                    *[HistoryItem(entry) for entry in reversed(self.entries)],
                    id="history-list-view",
                )
            else:
                yield Label("No history")
            with Horizontal(classes="button-row"):
                yield Button("Clear", id="clear-btn", variant="warning")
                yield Button("Cancel", id="cancel-btn")

    def on_mount(self) -> None:
        if self.entries:
            self.query_one("#history-list-view", ListView).focus()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, HistoryItem):
            self.dismiss(event.item.entry)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "clear-btn":
            self.dismiss("clear")
        else:
            self.dismiss(None)
