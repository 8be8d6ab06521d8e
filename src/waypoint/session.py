"""Navigation session: startup sequencing, back handling and settings reactions.

The session owns the history, the exit guard and the console slot, and
connects them to the host through the collaborator protocols. All of its
methods run on the host's UI thread. Slow work (bootstrap, initial
navigation) is posted to the host's task queue in order, so a view never
starts navigating before bootstrap has either succeeded or failed.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from functools import partial
from typing import Any, Callable, Iterable

from .bootstrap import BackendBootstrap, BackendSlot, BootstrapState, Builder
from .config import Preferences, Setting
from .console import ROOT_DIRECTORY
from .errors import (
    MSG_CANT_CREATE_CONSOLE,
    BackendUnavailable,
    BootstrapFailure,
    CommandError,
    ConsoleAllocError,
)
from .exit_guard import ExitGuard
from .history import HistoryEntry, HistoryPayload, HistoryStore, NavigationState
from .navigation import BackOutcome, BackResolver, BackState
from .protocols import NavigationViews, Notifier, OverlayHost, SearchCollaborator, SearchResult
from .validator import HistoryValidator

logger = logging.getLogger(__name__)

Task = Callable[[], Any]
# Receives a callback to invoke with the user's answer: True to fall back
# to a non-privileged console, False (or None) to abort.
Negotiator = Callable[[Callable[[bool | None], None]], None]
FatalHandler = Callable[[BootstrapFailure], None]


class TaskQueue:
    """Single-consumer queue of deferred tasks, run in post order."""

    def __init__(self) -> None:
        self._tasks: deque[Task] = deque()

    def post(self, task: Task) -> None:
        self._tasks.append(task)

    def run_pending(self) -> int:
        """Run queued tasks, including ones posted while running.

        Returns:
            The number of tasks run.
        """
        count = 0
        while self._tasks:
            task = self._tasks.popleft()
            task()
            count += 1
        return count

    def __len__(self) -> int:
        return len(self._tasks)


class NavigationSession:
    """Lifecycle owner of the navigation core."""

    def __init__(
        self,
        preferences: Preferences,
        builder: Builder,
        views: NavigationViews,
        search: SearchCollaborator,
        *,
        overlay: OverlayHost | None = None,
        notify: Notifier | None = None,
        negotiate: Negotiator | None = None,
        on_fatal: FatalHandler | None = None,
        post: Callable[[Task], Any] | None = None,
        view_ids: Iterable[int] = (0,),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.preferences = preferences
        self.views = views
        self.view_ids = tuple(view_ids)
        self.current_view_id = self.view_ids[0]

        self.slot = BackendSlot()
        self.bootstrap = BackendBootstrap(self.slot, builder, preferences)
        self.history = HistoryStore()
        self.validator = HistoryValidator(self.slot)
        self.exit_guard = ExitGuard(clock=clock)
        self.resolver = BackResolver(
            self.history,
            self.validator,
            views,
            search,
            self.exit_guard,
            overlay=overlay,
            notify=notify,
        )

        self.tasks = TaskQueue()
        self._post = post or self.tasks.post
        self._notify = self.resolver.notify
        self._negotiate = negotiate
        self._on_fatal = on_fatal
        self._negotiation_open = False
        self._pending_navigation: list[tuple[int, bool]] = []
        self.terminated = False

        self.console_selection_allowed = bool(
            preferences.get(Setting.ALLOW_CONSOLE_SELECTION, True)
        )
        preferences.subscribe(self.on_setting_changed)

    # Lifecycle

    def start(self, restore: bool = False) -> None:
        """Post the startup stages: bootstrap, then navigation of every view."""
        self._post(self.ensure_backend)
        for view_id in self.view_ids:
            self._post(partial(self.init_navigation, view_id, restore))

    def resume(self) -> None:
        """Re-run bootstrap and navigation of the current view after a resume."""
        self._post(self.ensure_backend)
        self._post(partial(self.init_navigation, self.current_view_id, True))

    def close(self) -> None:
        self.preferences.unsubscribe(self.on_setting_changed)
        if self.slot.console is not None:
            self.slot.console.close()

    def ensure_backend(self) -> bool:
        """Bootstrap stage. Returns True once a console is active."""
        if self.terminated:
            return False
        try:
            state = self.bootstrap.ensure_backend()
        except BootstrapFailure as e:
            self._fail(e)
            return False

        if state is BootstrapState.ACTIVE:
            return True

        if not self._negotiation_open:
            self._negotiation_open = True
            if self._negotiate is None:
                self._on_negotiation_choice(False)
            else:
                self._negotiate(self._on_negotiation_choice)
        return False

    def _on_negotiation_choice(self, fallback: bool | None) -> None:
        self._negotiation_open = False
        try:
            if fallback:
                self.bootstrap.accept_fallback()
            else:
                self.bootstrap.decline_fallback()
        except BootstrapFailure as e:
            self._fail(e)
            return

        pending, self._pending_navigation = self._pending_navigation, []
        for view_id, restore in pending:
            self._post(partial(self.init_navigation, view_id, restore))

    def _fail(self, error: BootstrapFailure) -> None:
        logger.error("Can't create console: %s", error)
        self.terminated = True
        self._pending_navigation.clear()
        self._notify(MSG_CANT_CREATE_CONSOLE, severity="error", timeout=5)
        if self._on_fatal is None:
            raise error
        self._on_fatal(error)

    def init_navigation(self, view_id: int, restore: bool = False) -> bool:
        """Open the configured initial directory in a view.

        Args:
            view_id: The view to navigate.
            restore: The view keeps its current state (external resume).

        Returns:
            True if the view was initialized.
        """
        if self.terminated:
            return False
        if not self.slot.is_active():
            if self.bootstrap.negotiating:
                self._pending_navigation.append((view_id, restore))
            else:
                logger.warning("No console, navigation of view %d skipped", view_id)
            return False
        if restore:
            return True

        initial = self.preferences.get(Setting.INITIAL_DIRECTORY, ROOT_DIRECTORY)
        try:
            initial = self.slot.resolve_absolute(initial)
        except (CommandError, BackendUnavailable) as e:
            logger.error("Resolve of initial directory %s fails: %s", initial, e)
            self._notify(f"Invalid initial directory: {initial}", severity="warning")
            initial = ROOT_DIRECTORY

        self.views.change_directory(view_id, initial)
        return True

    # History

    def on_new_history(self, payload: HistoryPayload) -> HistoryEntry:
        """Record a state the user is leaving."""
        return self.history.record(payload)

    def on_check_history(self) -> bool:
        """Whether the "up" affordance should be shown."""
        return not self.history.is_empty()

    def clear_history(self) -> None:
        self.history.clear()
        self.exit_guard.disarm()

    def navigate_to_history(self, entry: HistoryEntry) -> bool:
        """Jump to an entry picked from the history list."""
        return self.resolver.navigate_to_history(entry, validate=True)

    @property
    def back_state(self) -> BackState:
        """Where the next back action leads."""
        return self.resolver.state

    def back(self) -> bool:
        return self.resolver.back()

    def check_back_action(self) -> BackOutcome:
        """Handle a back key press."""
        outcome = self.resolver.resolve()
        logger.debug("Back action: %s", outcome.value)
        return outcome

    # Search round-trip

    def on_search_finished(self, result: SearchResult | None) -> None:
        """Apply the result reported by the search collaborator."""
        if result is not None and result.selection is not None:
            self.history.record(result.state)
            self.views.restore_navigation_state(
                NavigationState(self.current_view_id, result.selection)
            )
        elif result is not None and result.success_navigation:
            self.back()
        else:
            # The search may have changed the filesystem
            self.views.refresh(self.current_view_id)

    # Settings

    def on_setting_changed(self, key: Setting) -> None:
        if key is Setting.DISK_USAGE_WARNING_LEVEL:
            level = int(self.preferences.get(Setting.DISK_USAGE_WARNING_LEVEL, 95))
            self.views.set_disk_usage_warning_level(level)
        elif key in (Setting.CASE_SENSITIVE_SORT, Setting.SHOW_HIDDEN):
            self.views.refresh(self.current_view_id)
        elif key is Setting.ALLOW_CONSOLE_SELECTION:
            self.console_selection_allowed = bool(
                self.preferences.get(Setting.ALLOW_CONSOLE_SELECTION, False)
            )

    def switch_console(self, privileged: bool) -> bool:
        """Replace the active console with a privileged or non-privileged one."""
        if not self.console_selection_allowed:
            self._notify("Console selection is disabled", severity="warning")
            return False
        try:
            self.bootstrap.switch_console(privileged)
        except ConsoleAllocError as e:
            logger.error("Console switch failed: %s", e)
            self._notify(f"Unable to switch console: {e}", severity="error")
            return False
        self.views.refresh(self.current_view_id)
        return True
