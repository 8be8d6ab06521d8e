"""Navigation action handlers for WaypointApp."""

from __future__ import annotations

from ..navigation import BackOutcome
from ..widgets import ConfigurationBar, HistoryModal, NavigationView, SearchModal


class NavigationActionsMixin:
    """Mixin providing navigation actions (back, history, search, refresh)."""

    def action_go_back(self) -> None:
        """Handle the back key once pending UI work has run."""
        # Validation talks to the console; keep it out of the key handler
        self.call_later(self._check_back_action)

    def _check_back_action(self) -> None:
        outcome = self.session.check_back_action()
        self._update_back_indicator()
        if outcome is BackOutcome.EXIT:
            self.exit()

    def action_history(self) -> None:
        """Show the navigation history."""
        self.push_screen(
            HistoryModal(self.session.history.entries()),
            self._on_history_dismissed,
        )

    def _on_history_dismissed(self, result) -> None:
        if result is None:
            return
        if result == "clear":
            self.session.clear_history()
            self.notify("History cleared")
        else:
            self.session.navigate_to_history(result)
        self._update_back_indicator()

    def action_search(self) -> None:
        """Search below the current directory."""
        view = self.query_one("#navigation-view", NavigationView)
        if view.current_dir is None:
            return
        self.push_screen(
            SearchModal(self.session.slot.list_directory, view.current_dir),
            self._on_search_dismissed,
        )

    def _on_search_dismissed(self, result) -> None:
        self.session.on_search_finished(result)
        self._update_back_indicator()

    def action_refresh(self) -> None:
        """Reload the current directory."""
        self.query_one("#navigation-view", NavigationView).refresh_listing()

    def action_toggle_configuration(self) -> None:
        """Show or hide the configuration overlay."""
        bar = self.query_one("#configuration-bar", ConfigurationBar)
        if bar.is_showing:
            bar.hide()
        else:
            bar.show()

    def action_help(self) -> None:
        """Show help information."""
        self.notify(
            "esc/backspace=Back, h=History, s=Search, o=Options, c=Console, ctrl+r=Refresh, q=Quit",
            timeout=5,
        )
