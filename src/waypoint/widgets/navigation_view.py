"""Navigation view widget: breadcrumb plus the listing of one directory."""

import os
import shutil
from functools import partial
from typing import Callable

from rich.text import Text

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Label, ListItem, ListView, Static
from textual.worker import Worker, WorkerState

from ..config import Preferences, Setting
from ..console import ROOT_DIRECTORY, FileInfo
from ..errors import translate_exception
from ..history import NavigationState

# Maximum entries to display for one directory
MAX_DISPLAY_ENTRIES = 1000


class DirectoryItem(ListItem):
    """A list item representing a directory entry."""

    def __init__(self, info: FileInfo, label: str | None = None) -> None:
        super().__init__()
        self.info = info
        self.label = label or info.name

    def compose(self) -> ComposeResult:
        if self.info.is_directory:
            yield Label(Text(f"{self.label}/", style="bold cyan"))
        else:
            yield Label(self.label)


def sort_entries(entries: list[FileInfo], case_sensitive: bool) -> list[FileInfo]:
    """Sort directories first, then by name."""

    def key(info: FileInfo):
        name = info.name if case_sensitive else info.name.lower()
        return (not info.is_directory, name)

    return sorted(entries, key=key)


def disk_usage_percent(path: str) -> int | None:
    """Percent of used space on the mount holding `path`."""
    try:
        usage = shutil.disk_usage(path)
    except OSError:
        return None
    if usage.total == 0:
        return None
    return int(usage.used * 100 / usage.total)


class NavigationView(Vertical):
    """Widget browsing one directory at a time."""

    DEFAULT_CSS = """
    NavigationView {
        width: 1fr;
        height: 1fr;
    }

    NavigationView > #breadcrumb {
        background: $primary-background;
        color: $accent;
        text-style: bold;
        padding: 0 1;
        height: 1;
    }

    NavigationView > #directory-list-view {
        height: 1fr;
    }

    NavigationView ListItem {
        padding: 0 1;
    }

    NavigationView ListItem.--highlight {
        background: $accent;
    }
    """

    class NewHistory(Message):
        """Message emitted when the view leaves a directory."""

        def __init__(self, state: NavigationState) -> None:
            super().__init__()
            self.state = state

    class DirectoryChanged(Message):
        """Message emitted after a directory listing was loaded."""

        def __init__(self, view_id: int, path: str) -> None:
            super().__init__()
            self.view_id = view_id
            self.path = path

    def __init__(
        self,
        view_id: int,
        lister: Callable[[str], list[FileInfo]],
        preferences: Preferences,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.view_id = view_id
        self._lister = lister
        self._preferences = preferences
        self._current_dir: str | None = None
        self._pending_dir: str | None = None
        self._pending_history = False
        self._warning_level = int(preferences.get(Setting.DISK_USAGE_WARNING_LEVEL, 95))

    def compose(self) -> ComposeResult:
        yield Static("", id="breadcrumb")
        yield ListView(id="directory-list-view")

    @property
    def list_view(self) -> ListView:
        return self.query_one("#directory-list-view", ListView)

    @property
    def current_dir(self) -> str | None:
        return self._current_dir

    def change_dir(self, path: str, add_to_history: bool = True) -> None:
        """Open a directory.

        Args:
            path: Absolute directory path.
            add_to_history: Record the directory being left once the new
                one has been listed.
        """
        self._load(path, add_to_history)

    def restore_state(self, state: NavigationState) -> None:
        """Show a directory recorded in history without recording a new entry."""
        self.change_dir(state.current_directory, add_to_history=False)

    def refresh_listing(self) -> None:
        """Reload the current directory.

        Does nothing while another listing is loading, so a pending
        directory change is not replaced.
        """
        if self._pending_dir is not None:
            return
        if self._current_dir is not None:
            self._load(self._current_dir, add_to_history=False)

    def set_disk_usage_warning_level(self, level: int) -> None:
        self._warning_level = level
        self._update_breadcrumb()

    def _load(self, path: str, add_to_history: bool) -> None:
        # The listing goes through the console, off the UI thread
        self._pending_dir = path
        self._pending_history = add_to_history
        self.run_worker(
            partial(self._lister, path),
            name="_list_directory",
            group="listing",
            exclusive=True,
            thread=True,
            exit_on_error=False,
        )

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        """Apply a finished directory listing."""
        if event.worker.name != "_list_directory":
            return
        path = self._pending_dir
        if event.state == WorkerState.ERROR:
            self._pending_dir = None
            self.app.notify(translate_exception(event.worker.error), severity="error")
            return
        if event.state != WorkerState.SUCCESS or path is None:
            return
        self._pending_dir = None
        previous = self._current_dir
        if self._pending_history and previous is not None and previous != path:
            self.post_message(self.NewHistory(NavigationState(self.view_id, previous)))
        self._show_entries(path, event.worker.result or [])
        self.post_message(self.DirectoryChanged(self.view_id, path))

    def _show_entries(self, path: str, entries: list[FileInfo]) -> None:
        self._current_dir = path

        show_hidden = bool(self._preferences.get(Setting.SHOW_HIDDEN, False))
        case_sensitive = bool(self._preferences.get(Setting.CASE_SENSITIVE_SORT, False))
        if not show_hidden:
            entries = [e for e in entries if not e.name.startswith(".")]
        entries = sort_entries(entries, case_sensitive)[:MAX_DISPLAY_ENTRIES]

        list_view = self.list_view
        list_view.clear()
        if path != ROOT_DIRECTORY:
            parent = os.path.dirname(path.rstrip("/")) or ROOT_DIRECTORY
            list_view.append(DirectoryItem(FileInfo(parent, True), label=".."))
        for info in entries:
            list_view.append(DirectoryItem(info))
        if list_view.children:
            list_view.index = 0

        self._update_breadcrumb()

    def _update_breadcrumb(self) -> None:
        if self._current_dir is None:
            return
        text = Text(self._current_dir)
        used = disk_usage_percent(self._current_dir)
        if used is not None:
            style = "bold red" if used >= self._warning_level else "dim"
            text.append(f"  [{used}% used]", style=style)
        self.query_one("#breadcrumb", Static).update(text)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        """Open directories on Enter or click."""
        item = event.item
        if isinstance(item, DirectoryItem) and item.info.is_directory:
            event.stop()
            self.change_dir(item.info.path)
