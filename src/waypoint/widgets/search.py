"""Search modal: finds entries by name below a directory."""

import os
from functools import partial
from typing import Callable

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, OptionList, Static
from textual.widgets.option_list import Option
from textual.worker import Worker, WorkerState

from ..console import FileInfo
from ..errors import BackendUnavailable, CommandError, translate_exception
from ..history import SearchState
from ..protocols import SearchRestoreRequest, SearchResult

# Maximum matches shown for one query
MAX_RESULTS = 200


def find_matches(
    lister: Callable[[str], list[FileInfo]],
    directory: str,
    query: str,
) -> list[FileInfo]:
    """Match entry names of `directory` and its direct subdirectories."""
    needle = query.lower()
    matches = []
    entries = lister(directory)
    for info in entries:
        if needle in info.name.lower():
            matches.append(info)
    for info in entries:
        if not info.is_directory or len(matches) >= MAX_RESULTS:
            continue
        try:
            children = lister(info.path)
        except (CommandError, BackendUnavailable):
            # Unreadable subdirectories are skipped
            continue
        matches.extend(c for c in children if needle in c.name.lower())
    return matches[:MAX_RESULTS]


class SearchModal(ModalScreen[SearchResult | None]):
    """Modal screen running a name search.

    Selecting a match dismisses with a `SearchResult` whose selection is the
    directory to open. Escape dismisses without selection; the result then
    reports whether the search was restored from history.
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    CSS = """
    SearchModal {
        align: center middle;
    }

    #search-container {
        width: 80;
        height: auto;
        max-height: 30;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }

    #search-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #search-results {
        height: auto;
        max-height: 20;
        margin-top: 1;
    }
    """

    def __init__(
        self,
        lister: Callable[[str], list[FileInfo]],
        directory: str,
        restore: SearchRestoreRequest | None = None,
    ) -> None:
        super().__init__()
        self._lister = lister
        self.directory = restore.directory if restore else directory
        self.restore = restore
        self._query = restore.query if restore else ""
        self._matches: list[FileInfo] = []

    def compose(self) -> ComposeResult:
        with Vertical(id="search-container"):
            yield Static(f"SEARCH - {self.directory}", id="search-title")
            yield Input(value=self._query, placeholder="Name to search...", id="search-input")
            yield OptionList(id="search-results")

    def on_mount(self) -> None:
        self.query_one("#search-input", Input).focus()
        if self._query:
            self._run_search(self._query)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        query = event.value.strip()
        if query:
            self._run_search(query)

    def _run_search(self, query: str) -> None:
        self._query = query
        self.run_worker(
            partial(find_matches, self._lister, self.directory, query),
            name="_search",
            exclusive=True,
            thread=True,
            exit_on_error=False,
        )

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.worker.name != "_search":
            return
        if event.state == WorkerState.ERROR:
            self.app.notify(translate_exception(event.worker.error), severity="error")
            return
        if event.state != WorkerState.SUCCESS:
            return

        self._matches = event.worker.result or []
        results = self.query_one("#search-results", OptionList)
        results.clear_options()
        highlight = None
        for i, info in enumerate(self._matches):
            label = os.path.relpath(info.path, self.directory)
            if info.is_directory:
                label += "/"
            results.add_option(Option(label))
            if self.restore is not None and info.path == self.restore.marker:
                highlight = i
        if not self._matches:
            self.app.notify("No matches", severity="warning")
        elif highlight is not None:
            results.highlighted = highlight

    def _state(self, marker: str | None) -> SearchState:
        return SearchState(query=self._query, directory=self.directory, result_marker=marker)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        info = self._matches[event.option_index]
        target = info.path if info.is_directory else os.path.dirname(info.path)
        self.dismiss(SearchResult(state=self._state(info.path), selection=target))

    def action_cancel(self) -> None:
        marker = self.restore.marker if self.restore else None
        self.dismiss(
            SearchResult(state=self._state(marker), success_navigation=self.restore is not None)
        )
