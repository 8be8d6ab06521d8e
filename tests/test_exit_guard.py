"""Tests for waypoint.exit_guard module."""

from conftest import FakeClock

from waypoint.exit_guard import RELEASE_EXIT_CHECK_TIMEOUT, ExitDecision, ExitGuard


class TestExitGuard:
    def test_first_press_intercepted(self):
        guard = ExitGuard(clock=FakeClock())
        assert guard.on_root_back() is ExitDecision.INTERCEPTED
        assert guard.armed

    def test_second_press_within_timeout_exits(self):
        clock = FakeClock()
        guard = ExitGuard(clock=clock)
        guard.on_root_back()
        clock.advance(RELEASE_EXIT_CHECK_TIMEOUT - 0.5)
        assert guard.on_root_back() is ExitDecision.ALLOW_EXIT
        assert not guard.armed

    def test_timeout_rearms(self):
        clock = FakeClock()
        guard = ExitGuard(clock=clock)
        guard.on_root_back()
        clock.advance(RELEASE_EXIT_CHECK_TIMEOUT + 0.1)
        assert not guard.armed
        assert guard.on_root_back() is ExitDecision.INTERCEPTED
        assert guard.armed_at == clock.now

    def test_disarm(self):
        guard = ExitGuard(clock=FakeClock())
        guard.on_root_back()
        guard.disarm()
        assert guard.armed_at is None
        assert guard.on_root_back() is ExitDecision.INTERCEPTED
