"""Navigation history: recorded directory and search states."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union


@dataclass(frozen=True)
class NavigationState:
    """Snapshot of a browseable location in a navigation view."""

    view_id: int
    current_directory: str

    @property
    def title(self) -> str:
        return self.current_directory


@dataclass(frozen=True)
class SearchState:
    """Snapshot of an executed search.

    `result_marker` is opaque to the history; it is handed back to the
    search collaborator when the search is restored.
    """

    query: str
    directory: str
    result_marker: str | None = None

    @property
    def title(self) -> str:
        return f"Search: {self.query}"


HistoryPayload = Union[NavigationState, SearchState]


@dataclass(frozen=True)
class HistoryEntry:
    """A recorded state and its depth in the history stack."""

    position: int
    payload: HistoryPayload

    @property
    def title(self) -> str:
        return self.payload.title


class HistoryStore:
    """Stack of history entries.

    Entries are appended at the end and only ever removed from the end, so
    an entry's position is always its index in the store.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def record(self, payload: HistoryPayload) -> HistoryEntry:
        """Append a new state and return its entry."""
        entry = HistoryEntry(position=len(self._entries), payload=payload)
        self._entries.append(entry)
        return entry

    def truncate_to(self, position: int) -> None:
        """Remove the entry at `position` and every newer entry."""
        if position < 0:
            raise ValueError(f"Invalid history position: {position}")
        del self._entries[position:]

    def pop(self) -> HistoryEntry | None:
        """Remove and return the newest entry, or None if empty."""
        if self._entries:
            return self._entries.pop()
        return None

    def top(self) -> HistoryEntry | None:
        """Return the newest entry without removing it."""
        if self._entries:
            return self._entries[-1]
        return None

    def get(self, position: int) -> HistoryEntry:
        """Return the live entry recorded at `position`.

        Raises:
            LookupError: No entry exists at that position.
        """
        if not 0 <= position < len(self._entries):
            raise LookupError(f"No history entry at position {position}")
        return self._entries[position]

    def entries(self) -> list[HistoryEntry]:
        """Return a snapshot of the entries, oldest first."""
        return list(self._entries)

    def clear(self) -> None:
        """Clear all navigation history."""
        self._entries.clear()

    def is_empty(self) -> bool:
        """Check if the history is empty."""
        return len(self._entries) == 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))
