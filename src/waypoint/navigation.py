"""Back navigation over the recorded history."""

from __future__ import annotations

import logging
from enum import Enum

from .errors import (
    MSG_HISTORY_UNKNOWN,
    MSG_PUSH_AGAIN_TO_EXIT,
    BackendUnavailable,
    UnknownHistoryKind,
    translate_exception,
)
from .exit_guard import ExitDecision, ExitGuard
from .history import HistoryEntry, HistoryPayload, HistoryStore, NavigationState, SearchState
from .protocols import (
    NavigationViews,
    Notifier,
    OverlayHost,
    SearchCollaborator,
    SearchRestoreRequest,
)
from .validator import HistoryValidator

logger = logging.getLogger(__name__)

# Seconds the "press again to exit" notice stays visible
RELEASE_NOTICE_TIMEOUT = 2


class BackState(Enum):
    """Where a back action currently leads."""

    OVERLAY_OPEN = "overlay_open"
    HAS_HISTORY = "has_history"
    AT_ROOT = "at_root"


class BackOutcome(Enum):
    """What a back action did."""

    OVERLAY_CLOSED = "overlay_closed"
    NAVIGATED = "navigated"
    FAILED = "failed"
    EXIT_INTERCEPTED = "exit_intercepted"
    EXIT = "exit"

    @property
    def consumed(self) -> bool:
        """True unless the host should terminate."""
        return self is not BackOutcome.EXIT


def _log_notifier(message: str, **kwargs) -> None:
    logger.info("Notice: %s", message)


class BackResolver:
    """Decides and applies the effect of a back action.

    In priority order a back action closes an open overlay, goes back to the
    newest history entry that still exists, or reaches the exit guard once
    the history is exhausted.
    """

    def __init__(
        self,
        history: HistoryStore,
        validator: HistoryValidator,
        views: NavigationViews,
        search: SearchCollaborator,
        exit_guard: ExitGuard,
        overlay: OverlayHost | None = None,
        notify: Notifier | None = None,
    ) -> None:
        self.history = history
        self.validator = validator
        self.views = views
        self.search = search
        self.exit_guard = exit_guard
        self.overlay = overlay
        self.notify = notify or _log_notifier

    @property
    def state(self) -> BackState:
        if self.overlay is not None and self.overlay.is_overlay_open():
            return BackState.OVERLAY_OPEN
        if not self.history.is_empty():
            return BackState.HAS_HISTORY
        return BackState.AT_ROOT

    def resolve(self) -> BackOutcome:
        """Handle a back action from the user."""
        if self.overlay is not None and self.overlay.is_overlay_open():
            self.overlay.close_overlay()
            return BackOutcome.OVERLAY_CLOSED

        if self.back():
            self.exit_guard.disarm()
            return BackOutcome.NAVIGATED

        if not self.history.is_empty():
            # The navigation failed and was reported; the entry is kept
            return BackOutcome.FAILED

        if self.exit_guard.on_root_back() is ExitDecision.INTERCEPTED:
            self.notify(MSG_PUSH_AGAIN_TO_EXIT, timeout=RELEASE_NOTICE_TIMEOUT)
            return BackOutcome.EXIT_INTERCEPTED
        return BackOutcome.EXIT

    def back(self) -> bool:
        """Go back to the newest history entry that can still be reached.

        Returns:
            True if a history entry was restored.
        """
        try:
            self.prune_stale()
        except BackendUnavailable as e:
            # Without a console nothing can be told stale; keep the history
            logger.warning("Back navigation without a console: %s", e)
            self.notify(translate_exception(e), severity="warning")
            return False
        top = self.history.top()
        if top is None:
            return False
        return self.navigate_to_history(top)

    def prune_stale(self) -> int:
        """Drop stale directory entries from the top of the history.

        Returns:
            The number of entries dropped.

        Raises:
            BackendUnavailable: No console is active.
        """
        dropped = 0
        while True:
            top = self.history.top()
            if top is None or self.validator.validate_navigable(top):
                break
            self.history.pop()
            dropped += 1
            logger.info("Dropped stale history entry %d: %s", top.position, top.title)
        return dropped

    def navigate_to_history(self, entry: HistoryEntry, validate: bool = False) -> bool:
        """Restore a history entry and discard it together with newer entries.

        Args:
            entry: The entry to restore.
            validate: Check the entry against the filesystem first.

        Returns:
            True on success. On failure the user is notified and the
            history is left untouched.

        Raises:
            UnknownHistoryKind: The entry payload is of an unknown type.
        """
        try:
            real = self.history.get(entry.position)
            if validate:
                self.validator.require_navigable(real)
            self._dispatch(real.payload)
        except UnknownHistoryKind:
            raise
        except Exception:
            logger.exception(
                "Failed to navigate to history %d: %s", entry.position, entry.title
            )
            self.notify(MSG_HISTORY_UNKNOWN, severity="error")
            return False

        self.history.truncate_to(real.position)
        logger.debug("Navigated back to history %d: %s", real.position, real.title)
        return True

    def _dispatch(self, payload: HistoryPayload) -> None:
        if isinstance(payload, NavigationState):
            self.views.restore_navigation_state(payload)
        elif isinstance(payload, SearchState):
            self.search.request_restore(SearchRestoreRequest.from_state(payload))
        else:
            raise UnknownHistoryKind(f"Unknown history type: {type(payload).__name__}")
