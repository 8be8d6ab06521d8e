"""Type protocols for the collaborators of the navigation core.

These protocols define what the history, back and bootstrap logic needs
from the hosting application, so the core can be driven by the Textual
app or by test doubles.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .console import FileInfo
    from .history import NavigationState, SearchState


@dataclass(frozen=True)
class SearchRestoreRequest:
    """Request to reopen a previously executed search."""

    query: str
    directory: str
    marker: str | None = None

    @classmethod
    def from_state(cls, state: "SearchState") -> "SearchRestoreRequest":
        return cls(query=state.query, directory=state.directory, marker=state.result_marker)


@dataclass(frozen=True)
class SearchResult:
    """What the search collaborator reports back when a search closes."""

    state: "SearchState"
    selection: str | None = None
    success_navigation: bool = False


@runtime_checkable
class FileSystemQuery(Protocol):
    """Filesystem metadata queries, answered by the active console."""

    def stat(self, path: str) -> "FileInfo": ...
    def resolve_absolute(self, path: str) -> str: ...


@runtime_checkable
class NavigationViews(Protocol):
    """The navigation views of the host, addressed by view id."""

    def change_directory(self, view_id: int, path: str) -> None: ...
    def restore_navigation_state(self, state: "NavigationState") -> None: ...
    def refresh(self, view_id: int | None = None) -> None: ...
    def set_disk_usage_warning_level(self, level: int) -> None: ...


@runtime_checkable
class SearchCollaborator(Protocol):
    """Runs searches on behalf of the navigation core."""

    def request_restore(self, request: SearchRestoreRequest) -> None: ...


@runtime_checkable
class OverlayHost(Protocol):
    """A host that may show a configuration overlay above the views."""

    def is_overlay_open(self) -> bool: ...
    def close_overlay(self) -> None: ...


# Matches the signature of textual.app.App.notify
Notifier = Callable[..., None]
