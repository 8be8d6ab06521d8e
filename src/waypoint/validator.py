"""Validation of history entries against the live filesystem."""

import logging

from .errors import CommandError, StaleHistoryEntry, UnknownHistoryKind
from .history import HistoryEntry, NavigationState, SearchState
from .protocols import FileSystemQuery

logger = logging.getLogger(__name__)


class HistoryValidator:
    """Decides whether a history entry can still be navigated to."""

    def __init__(self, filesystem: FileSystemQuery) -> None:
        self.filesystem = filesystem

    def validate_navigable(self, entry: HistoryEntry) -> bool:
        """Check that the directory of a navigation entry still exists.

        Search entries are always navigable; their contents belong to the
        search collaborator.

        Raises:
            BackendUnavailable: No console is active, so nothing can be checked.
        """
        payload = entry.payload
        if isinstance(payload, SearchState):
            return True
        if not isinstance(payload, NavigationState):
            raise UnknownHistoryKind(f"Unknown history type: {type(payload).__name__}")

        try:
            info = self.filesystem.stat(payload.current_directory)
        except CommandError as e:
            logger.info("History entry %d not navigable: %s", entry.position, e)
            return False
        return info is not None

    def require_navigable(self, entry: HistoryEntry) -> None:
        """Like `validate_navigable`, but raise for a stale entry.

        Raises:
            StaleHistoryEntry: The entry's directory no longer exists.
        """
        if not self.validate_navigable(entry):
            raise StaleHistoryEntry(entry.position, entry.title)
