"""Settings and console action handlers for WaypointApp."""

from __future__ import annotations

from ..config import Setting
from ..widgets import ChooseConsoleModal, ConfigurationBar


class SettingsActionsMixin:
    """Mixin providing view option toggles and console selection."""

    def _toggle_setting(self, key: Setting) -> None:
        value = not bool(self.preferences.get(key, False))
        try:
            self.preferences.set(key, value, persist_immediately=True)
        except OSError as e:
            self.notify(f"Unable to save settings: {e}", severity="error")
            return
        self.query_one("#configuration-bar", ConfigurationBar).update_options()

    def action_toggle_hidden(self) -> None:
        """Show or hide dot files."""
        self._toggle_setting(Setting.SHOW_HIDDEN)

    def action_toggle_case_sort(self) -> None:
        """Toggle case-sensitive sorting."""
        self._toggle_setting(Setting.CASE_SENSITIVE_SORT)

    def action_choose_console(self) -> None:
        """Let the user switch between the privileged and non-privileged console."""
        if not self.session.console_selection_allowed:
            self.notify("Console selection is disabled", severity="warning")
            return
        self.push_screen(
            ChooseConsoleModal(self.session.slot.is_privileged),
            self._on_console_chosen,
        )

    def _on_console_chosen(self, privileged: bool | None) -> None:
        if privileged is None:
            return
        if self.session.switch_console(privileged):
            kind = "privileged" if privileged else "non-privileged"
            self.notify(f"Using the {kind} console")
