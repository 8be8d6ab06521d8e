"""Tests for waypoint.navigation module."""

import pytest
from conftest import FakeClock, FakeConsole, FakeOverlay, FakeSearch, FakeViews, Notices

from waypoint.bootstrap import BackendSlot
from waypoint.errors import MSG_HISTORY_UNKNOWN, MSG_PUSH_AGAIN_TO_EXIT, UnknownHistoryKind
from waypoint.exit_guard import ExitGuard
from waypoint.history import HistoryEntry, HistoryStore, NavigationState, SearchState
from waypoint.navigation import BackOutcome, BackResolver, BackState
from waypoint.protocols import SearchRestoreRequest
from waypoint.validator import HistoryValidator


class Harness:
    def __init__(self, paths=("/", "/a", "/b", "/c"), overlay=None):
        self.console = FakeConsole(set(paths))
        self.history = HistoryStore()
        self.views = FakeViews()
        self.search = FakeSearch()
        self.notices = Notices()
        self.clock = FakeClock()
        self.guard = ExitGuard(clock=self.clock)
        self.resolver = BackResolver(
            self.history,
            HistoryValidator(self.console),
            self.views,
            self.search,
            self.guard,
            overlay=overlay,
            notify=self.notices,
        )

    def visit(self, *paths):
        for path in paths:
            self.history.record(NavigationState(0, path))

    @property
    def restored(self):
        return [c[1].current_directory for c in self.views.calls if c[0] == "restore"]


@pytest.fixture
def harness():
    return Harness()


class TestBack:
    def test_back_restores_newest(self, harness):
        harness.visit("/a", "/b")
        assert harness.resolver.back()
        assert harness.restored == ["/b"]
        assert len(harness.history) == 1

    def test_stale_entries_are_skipped(self, harness):
        harness.visit("/a", "/b", "/c")
        harness.console.paths.discard("/b")
        harness.console.paths.discard("/c")
        assert harness.resolver.back()
        assert harness.restored == ["/a"]
        assert harness.history.is_empty()

    def test_all_stale_empties_history(self, harness):
        harness.visit("/a", "/b")
        harness.console.paths.clear()
        assert not harness.resolver.back()
        assert harness.history.is_empty()
        assert harness.views.calls == []

    def test_entry_recorded_after_back_reuses_position(self, harness):
        harness.visit("/a", "/b")
        harness.resolver.back()
        entry = harness.history.record(NavigationState(0, "/c"))
        assert entry.position == 1

    def test_search_entry_requests_restore(self, harness):
        harness.history.record(SearchState("foo", "/a", result_marker="/a/foo"))
        assert harness.resolver.back()
        assert harness.search.requests == [SearchRestoreRequest("foo", "/a", "/a/foo")]
        assert harness.history.is_empty()


class TestNavigateToHistory:
    def test_truncates_entry_and_newer(self, harness):
        harness.visit("/a", "/b", "/c")
        entry = harness.history.get(1)
        assert harness.resolver.navigate_to_history(entry)
        assert harness.restored == ["/b"]
        assert [e.payload.current_directory for e in harness.history] == ["/a"]

    def test_validated_stale_entry_fails(self, harness):
        harness.visit("/a", "/b")
        harness.console.paths.discard("/a")
        assert not harness.resolver.navigate_to_history(harness.history.get(0), validate=True)
        assert len(harness.history) == 2
        assert harness.notices.texts == [MSG_HISTORY_UNKNOWN]

    def test_missing_position_fails(self, harness):
        assert not harness.resolver.navigate_to_history(HistoryEntry(5, NavigationState(0, "/a")))
        assert harness.notices.texts == [MSG_HISTORY_UNKNOWN]

    def test_unknown_kind_propagates(self, harness):
        harness.history.record("not a state")
        with pytest.raises(UnknownHistoryKind):
            harness.resolver.navigate_to_history(harness.history.get(0))
        assert len(harness.history) == 1

    def test_view_failure_keeps_history(self, harness):
        def broken(state):
            raise OSError("view gone")

        harness.views.restore_navigation_state = broken
        harness.visit("/a")
        assert not harness.resolver.navigate_to_history(harness.history.get(0))
        assert len(harness.history) == 1


class TestResolve:
    def test_overlay_closed_first(self):
        overlay = FakeOverlay(open=True)
        harness = Harness(overlay=overlay)
        harness.visit("/a")
        assert harness.resolver.state is BackState.OVERLAY_OPEN
        assert harness.resolver.resolve() is BackOutcome.OVERLAY_CLOSED
        assert overlay.closed == 1
        assert len(harness.history) == 1

    def test_navigates_and_disarms(self, harness):
        harness.resolver.resolve()
        assert harness.guard.armed
        harness.visit("/a")
        assert harness.resolver.resolve() is BackOutcome.NAVIGATED
        assert not harness.guard.armed

    def test_double_back_at_root_exits(self, harness):
        assert harness.resolver.state is BackState.AT_ROOT
        first = harness.resolver.resolve()
        assert first is BackOutcome.EXIT_INTERCEPTED
        assert first.consumed
        assert harness.resolver.state is BackState.AT_ROOT
        assert harness.notices.texts == [MSG_PUSH_AGAIN_TO_EXIT]

        harness.clock.advance(1)
        second = harness.resolver.resolve()
        assert second is BackOutcome.EXIT
        assert not second.consumed

    def test_slow_second_press_is_intercepted_again(self, harness):
        harness.resolver.resolve()
        harness.clock.advance(10)
        assert harness.resolver.resolve() is BackOutcome.EXIT_INTERCEPTED
        assert len(harness.notices.texts) == 2

    def test_any_view_error_is_reported(self, harness):
        def detached(state):
            raise RuntimeError("widget detached")

        harness.views.restore_navigation_state = detached
        harness.visit("/a")
        assert harness.resolver.resolve() is BackOutcome.FAILED
        assert len(harness.history) == 1
        assert harness.notices.texts == [MSG_HISTORY_UNKNOWN]

    def test_without_console_history_is_kept(self):
        harness = Harness()
        harness.resolver.validator = HistoryValidator(BackendSlot())
        harness.visit("/a", "/b", "/c")
        assert harness.resolver.resolve() is BackOutcome.FAILED
        assert len(harness.history) == 3
        assert not harness.guard.armed
        assert harness.views.calls == []

    def test_state_follows_history(self, harness):
        assert harness.resolver.state is BackState.AT_ROOT
        harness.visit("/a")
        assert harness.resolver.state is BackState.HAS_HISTORY

    def test_failed_navigation_does_not_reach_exit(self, harness):
        def broken(state):
            raise OSError("view gone")

        harness.views.restore_navigation_state = broken
        harness.visit("/a")
        assert harness.resolver.resolve() is BackOutcome.FAILED
        assert not harness.guard.armed

    def test_stale_history_falls_through_to_exit_guard(self, harness):
        harness.visit("/a")
        harness.console.paths.clear()
        assert harness.resolver.resolve() is BackOutcome.EXIT_INTERCEPTED

    def test_walk_back_to_root(self, harness):
        harness.visit("/", "/a", "/b")
        outcomes = [harness.resolver.resolve() for _ in range(5)]
        assert outcomes == [
            BackOutcome.NAVIGATED,
            BackOutcome.NAVIGATED,
            BackOutcome.NAVIGATED,
            BackOutcome.EXIT_INTERCEPTED,
            BackOutcome.EXIT,
        ]
        assert harness.restored == ["/b", "/a", "/"]

    def test_deleted_middle_entry_is_skipped(self, harness):
        harness.visit("/a", "/b", "/c")
        harness.console.paths.discard("/b")
        assert harness.resolver.resolve() is BackOutcome.NAVIGATED
        assert harness.resolver.resolve() is BackOutcome.NAVIGATED
        assert harness.restored == ["/c", "/a"]
        assert harness.history.is_empty()
