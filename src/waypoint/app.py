"""Main Textual application for Waypoint."""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from .actions import NavigationActionsMixin, SettingsActionsMixin
from .config import Config, Preferences
from .console import ConsoleBuilder
from .errors import BootstrapFailure, NavigationFailure, translate_exception
from .history import NavigationState
from .navigation import BackState
from .protocols import SearchRestoreRequest
from .session import NavigationSession
from .watcher import DirectoryWatcher
from .widgets import ConfigurationBar, ConsoleFallbackModal, NavigationView, SearchModal


class ViewHost:
    """Exposes the app's widgets to the navigation session.

    Implements the view, search and overlay collaborator protocols.
    """

    def __init__(self, app: "WaypointApp") -> None:
        self.app = app

    def _get_view(self, view_id: int) -> NavigationView:
        for view in self.app.query(NavigationView):
            if view.view_id == view_id:
                return view
        raise NavigationFailure(f"Unknown navigation view: {view_id}")

    def change_directory(self, view_id: int, path: str) -> None:
        self._get_view(view_id).change_dir(path)

    def restore_navigation_state(self, state: NavigationState) -> None:
        self._get_view(state.view_id).restore_state(state)

    def refresh(self, view_id: int | None = None) -> None:
        if view_id is None:
            for view in self.app.query(NavigationView):
                view.refresh_listing()
        else:
            self._get_view(view_id).refresh_listing()

    def set_disk_usage_warning_level(self, level: int) -> None:
        for view in self.app.query(NavigationView):
            view.set_disk_usage_warning_level(level)

    def request_restore(self, request: SearchRestoreRequest) -> None:
        self.app.push_screen(
            SearchModal(self.app.session.slot.list_directory, request.directory, restore=request),
            self.app._on_search_dismissed,
        )

    def is_overlay_open(self) -> bool:
        return self.app.query_one("#configuration-bar", ConfigurationBar).is_showing

    def close_overlay(self) -> None:
        self.app.query_one("#configuration-bar", ConfigurationBar).hide()


class WaypointApp(NavigationActionsMixin, SettingsActionsMixin, App):
    """Waypoint - terminal file browser."""

    TITLE = "Waypoint"
    SUB_TITLE = "File Browser"

    CSS = """
    #navigation-view {
        height: 1fr;
        border: solid $accent;
    }

    #navigation-view:focus-within {
        border: solid cyan;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("escape", "go_back", "Back"),
        Binding("backspace", "go_back", "Back", show=False),
        Binding("h", "history", "History"),
        Binding("s", "search", "Search"),
        Binding("o", "toggle_configuration", "Options"),
        Binding(".", "toggle_hidden", "Hidden", show=False),
        Binding("i", "toggle_case_sort", "Case Sort", show=False),
        Binding("c", "choose_console", "Console", show=False),
        Binding("ctrl+r", "refresh", "Refresh", show=False),
        Binding("ctrl+z", "suspend_process", "Suspend", show=False),
        Binding("?", "help", "Help"),
    ]

    def __init__(self, config: Config) -> None:
        super().__init__()
        self.config = config
        self.preferences = Preferences(config)
        host = ViewHost(self)
        self.session = NavigationSession(
            self.preferences,
            ConsoleBuilder(),
            views=host,
            search=host,
            overlay=host,
            notify=self.notify,
            negotiate=self._ask_console_fallback,
            on_fatal=self._on_bootstrap_failure,
            post=self.call_later,
        )
        self._watcher = DirectoryWatcher(self._on_directory_change)

    def compose(self) -> ComposeResult:
        yield Header()
        yield ConfigurationBar(self.preferences, id="configuration-bar")
        yield NavigationView(
            view_id=0,
            lister=self.session.slot.list_directory,
            preferences=self.preferences,
            id="navigation-view",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Bootstrap the console, then open the initial directory."""
        self.query_one("#navigation-view", NavigationView).list_view.focus()
        self.app_resume_signal.subscribe(self, self._on_app_resume)
        self.session.start()

    def _on_app_resume(self, *args) -> None:
        """Re-check the console after the process was suspended."""
        self.session.resume()

    async def on_unmount(self) -> None:
        """Clean up when app closes."""
        self._watcher.stop()
        self.session.close()

    def _ask_console_fallback(self, answer) -> None:
        self.push_screen(ConsoleFallbackModal(), answer)

    def _on_bootstrap_failure(self, error: BootstrapFailure) -> None:
        self.exit(return_code=1, message=translate_exception(error))

    def on_navigation_view_new_history(self, event: NavigationView.NewHistory) -> None:
        self.session.on_new_history(event.state)
        self._update_back_indicator()

    def on_navigation_view_directory_changed(
        self, event: NavigationView.DirectoryChanged
    ) -> None:
        self.sub_title = event.path
        self._watcher.watch(event.path)

    def _update_back_indicator(self) -> None:
        """Show the history depth in the title while back can navigate."""
        state = self.session.back_state
        if state is BackState.AT_ROOT:
            self.title = self.TITLE
        elif self.session.on_check_history():
            self.title = f"{self.TITLE} [{len(self.session.history)}]"

    def _on_directory_change(self, directory: str) -> None:
        """Handle directory changes (called from watcher thread)."""
        self.call_from_thread(self._refresh_if_current, directory)

    def _refresh_if_current(self, directory: str) -> None:
        view = self.query_one("#navigation-view", NavigationView)
        if view.current_dir == directory:
            view.refresh_listing()


def run_app(config: Config) -> int:
    """Run the Waypoint application and return its exit code."""
    app = WaypointApp(config)
    app.run()
    return app.return_code or 0
