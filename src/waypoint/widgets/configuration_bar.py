"""Configuration overlay shown above the navigation view."""

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Static

from ..config import Preferences, Setting


class ConfigurationBar(Horizontal):
    """Row of view options; hidden until toggled, closed by back."""

    DEFAULT_CSS = """
    ConfigurationBar {
        height: 1;
        background: $warning-darken-2;
        padding: 0 1;
        display: none;
    }

    ConfigurationBar.visible {
        display: block;
    }
    """

    def __init__(self, preferences: Preferences, **kwargs) -> None:
        super().__init__(**kwargs)
        self._preferences = preferences

    def compose(self) -> ComposeResult:
        yield Static(self._describe(), id="configuration-options")

    def _describe(self) -> str:
        hidden = "on" if self._preferences.get(Setting.SHOW_HIDDEN, False) else "off"
        case = "on" if self._preferences.get(Setting.CASE_SENSITIVE_SORT, False) else "off"
        return f"CONFIGURE  .=hidden files ({hidden})  i=case-sensitive sort ({case})  esc=close"

    @property
    def is_showing(self) -> bool:
        return self.has_class("visible")

    def show(self) -> None:
        self.update_options()
        self.add_class("visible")

    def hide(self) -> None:
        self.remove_class("visible")

    def update_options(self) -> None:
        self.query_one("#configuration-options", Static).update(self._describe())
