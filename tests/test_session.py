"""Tests for waypoint.session module."""

import pytest
from conftest import FakeBuilder

from waypoint.config import Config, Setting
from waypoint.errors import (
    MSG_CANT_CREATE_CONSOLE,
    BootstrapNegotiationDeclined,
    NoUsableBackend,
)
from waypoint.history import NavigationState, SearchState
from waypoint.navigation import BackOutcome, BackState
from waypoint.protocols import SearchRestoreRequest, SearchResult
from waypoint.session import NavigationSession, TaskQueue


class Negotiator:
    """Stores the answer callback until the test answers."""

    def __init__(self):
        self.asked = 0
        self.answer = None

    def __call__(self, answer):
        self.asked += 1
        self.answer = answer


@pytest.fixture
def failures():
    return []


def make_session(preferences, builder, views, search, notices, clock, failures, **kwargs):
    kwargs.setdefault("on_fatal", failures.append)
    return NavigationSession(
        preferences,
        builder,
        views,
        search,
        notify=notices,
        clock=clock,
        **kwargs,
    )


@pytest.fixture
def session(preferences, builder, views, search, notices, clock, failures):
    return make_session(preferences, builder, views, search, notices, clock, failures)


class TestTaskQueue:
    def test_runs_in_post_order(self):
        queue = TaskQueue()
        ran = []
        queue.post(lambda: ran.append(1))
        queue.post(lambda: queue.post(lambda: ran.append(3)) or ran.append(2))
        assert queue.run_pending() == 3
        assert ran == [1, 2, 3]
        assert len(queue) == 0


class TestStartup:
    def test_bootstrap_runs_before_navigation(self, session, views):
        session.start()
        assert len(session.tasks) == 2
        session.tasks.run_pending()
        assert session.slot.is_active()
        assert views.calls == [("change_directory", 0, "/home/user")]

    def test_every_view_is_initialized(
        self, preferences, builder, views, search, notices, clock, failures
    ):
        session = make_session(
            preferences, builder, views, search, notices, clock, failures, view_ids=(0, 1)
        )
        session.start()
        session.tasks.run_pending()
        assert [c[1] for c in views.calls] == [0, 1]

    def test_restore_keeps_view_state(self, session, views):
        session.start(restore=True)
        session.tasks.run_pending()
        assert session.slot.is_active()
        assert views.calls == []

    def test_invalid_initial_directory_falls_back_to_root(self, session, preferences, views, notices):
        preferences.config.initial_directory = "/nowhere"
        session.start()
        session.tasks.run_pending()
        assert views.calls == [("change_directory", 0, "/")]
        assert notices.texts == ["Invalid initial directory: /nowhere"]

    def test_resume_bootstraps_without_navigating(self, session, builder, views):
        session.resume()
        session.tasks.run_pending()
        assert session.slot.is_active()
        assert builder.allocations == [False]
        assert views.calls == []

    def test_resume(self, session, builder, views):
        session.start()
        session.tasks.run_pending()
        session.resume()
        session.tasks.run_pending()
        assert builder.allocations == [False]
        assert len(views.calls) == 1


class TestBootstrapFailure:
    def test_no_selection_terminates(
        self, preferences, views, search, notices, clock, failures
    ):
        preferences.config.superuser_mode = True
        preferences.config.allow_console_selection = False
        session = make_session(
            preferences, FakeBuilder(fail_privileged=True), views, search, notices, clock, failures
        )
        session.start()
        session.tasks.run_pending()
        assert session.terminated
        assert isinstance(failures[0], NoUsableBackend)
        assert notices.texts == [MSG_CANT_CREATE_CONSOLE]
        assert views.calls == []

    def test_without_fatal_handler_raises(self, preferences, views, search, notices, clock):
        preferences.config.superuser_mode = True
        preferences.config.allow_console_selection = False
        session = NavigationSession(
            preferences, FakeBuilder(fail_privileged=True), views, search, notify=notices
        )
        with pytest.raises(NoUsableBackend):
            session.ensure_backend()


class TestNegotiation:
    @pytest.fixture
    def negotiator(self):
        return Negotiator()

    @pytest.fixture
    def negotiating(self, preferences, views, search, notices, clock, failures, negotiator):
        preferences.config.superuser_mode = True
        session = make_session(
            preferences,
            FakeBuilder(fail_privileged=True),
            views,
            search,
            notices,
            clock,
            failures,
            negotiate=negotiator,
        )
        session.start()
        session.tasks.run_pending()
        return session

    def test_navigation_waits_for_answer(self, negotiating, negotiator, views):
        assert negotiator.asked == 1
        assert views.calls == []

    def test_accept_runs_pending_navigation(self, negotiating, negotiator, views, preferences):
        negotiator.answer(True)
        negotiating.tasks.run_pending()
        assert not negotiating.slot.is_privileged
        assert views.calls == [("change_directory", 0, "/home/user")]
        assert preferences.config.superuser_mode is False
        assert preferences.config.allow_console_selection is True

    def test_accept_with_unwritable_config(
        self, negotiating, negotiator, views, failures, monkeypatch
    ):
        def read_only(self):
            raise PermissionError("read-only file system")

        monkeypatch.setattr(Config, "save", read_only)
        negotiator.answer(True)
        negotiating.tasks.run_pending()
        assert negotiating.slot.is_active()
        assert not negotiating.terminated
        assert failures == []
        assert views.calls == [("change_directory", 0, "/home/user")]

    def test_decline_terminates(self, negotiating, negotiator, views, failures):
        negotiator.answer(False)
        negotiating.tasks.run_pending()
        assert negotiating.terminated
        assert isinstance(failures[0], BootstrapNegotiationDeclined)
        assert views.calls == []

    def test_missing_negotiator_declines(
        self, preferences, views, search, notices, clock, failures
    ):
        preferences.config.superuser_mode = True
        session = make_session(
            preferences, FakeBuilder(fail_privileged=True), views, search, notices, clock, failures
        )
        session.start()
        session.tasks.run_pending()
        assert isinstance(failures[0], BootstrapNegotiationDeclined)


class TestHistory:
    def test_up_affordance(self, session):
        assert not session.on_check_history()
        session.on_new_history(NavigationState(0, "/"))
        assert session.on_check_history()

    def test_clear_history_disarms_guard(self, session):
        session.check_back_action()
        assert session.exit_guard.armed
        session.on_new_history(NavigationState(0, "/"))
        session.clear_history()
        assert not session.on_check_history()
        assert not session.exit_guard.armed

    def test_navigate_to_history_validates(self, session, views, notices):
        session.start()
        session.tasks.run_pending()
        entry = session.on_new_history(NavigationState(0, "/deleted"))
        assert not session.navigate_to_history(entry)
        assert len(session.history) == 1

    def test_back_action_without_backend_keeps_history(self, session, notices):
        for path in ("/", "/home", "/home/user"):
            session.on_new_history(NavigationState(0, path))
        assert session.check_back_action() is BackOutcome.FAILED
        assert len(session.history) == 3
        assert not session.exit_guard.armed
        assert notices.texts == ["No console is available"]

    def test_back_state(self, session):
        assert session.back_state is BackState.AT_ROOT
        session.on_new_history(NavigationState(0, "/"))
        assert session.back_state is BackState.HAS_HISTORY


class TestSearchRoundTrip:
    def test_selection_records_search_and_opens_directory(self, session, views):
        state = SearchState("user", "/home", result_marker="/home/user")
        session.on_search_finished(SearchResult(state, selection="/home/user"))
        assert session.history.top().payload == state
        assert views.calls == [("restore", NavigationState(0, "/home/user"))]

    def test_back_reopens_search(self, session, search):
        session.start()
        session.tasks.run_pending()
        state = SearchState("user", "/home", result_marker="/home/user")
        session.on_search_finished(SearchResult(state, selection="/home/user"))
        assert session.check_back_action() is BackOutcome.NAVIGATED
        assert search.requests == [SearchRestoreRequest("user", "/home", "/home/user")]
        assert session.history.is_empty()

    def test_cancel_restored_search_goes_back(self, session, views):
        session.start()
        session.tasks.run_pending()
        session.on_new_history(NavigationState(0, "/"))
        session.on_search_finished(
            SearchResult(SearchState("x", "/home"), success_navigation=True)
        )
        assert views.calls[-1] == ("restore", NavigationState(0, "/"))

    def test_cancel_new_search_refreshes(self, session, views):
        session.on_search_finished(SearchResult(SearchState("x", "/")))
        session.on_search_finished(None)
        assert views.calls == [("refresh", 0), ("refresh", 0)]


class TestSettings:
    def test_disk_level_forwarded(self, session, preferences, views):
        preferences.set(Setting.DISK_USAGE_WARNING_LEVEL, 80)
        assert views.calls == [("disk_level", 80)]

    def test_display_options_refresh(self, session, preferences, views):
        preferences.set(Setting.SHOW_HIDDEN, True)
        preferences.set(Setting.CASE_SENSITIVE_SORT, True)
        assert views.calls == [("refresh", 0), ("refresh", 0)]

    def test_console_selection_flag(self, session, preferences):
        preferences.set(Setting.ALLOW_CONSOLE_SELECTION, False)
        assert not session.console_selection_allowed
        assert not session.switch_console(True)

    def test_close_unsubscribes(self, session, preferences, views):
        session.close()
        preferences.set(Setting.SHOW_HIDDEN, True)
        assert views.calls == []


class TestSwitchConsole:
    def test_switch(self, session, views):
        session.start()
        session.tasks.run_pending()
        assert session.switch_console(True)
        assert session.slot.is_privileged
        assert views.calls[-1] == ("refresh", 0)

    def test_failed_switch_notifies(
        self, preferences, views, search, notices, clock, failures
    ):
        session = make_session(
            preferences, FakeBuilder(fail_privileged=True), views, search, notices, clock, failures
        )
        session.start()
        session.tasks.run_pending()
        assert not session.switch_console(True)
        assert not session.slot.is_privileged
        assert notices.texts == ["Unable to switch console: sudo denied"]
