"""Shared fixtures for waypoint tests."""

import pytest

from waypoint.config import Config, Preferences
from waypoint.console import FileInfo
from waypoint.errors import ConsoleAllocError, NoSuchFileOrDirectory


class FakeConsole:
    """Console answering from a set of existing directories."""

    def __init__(self, paths, privileged=False, home="/home/user"):
        self.paths = paths
        self.privileged = privileged
        self.home = home
        self.closed = False

    @property
    def is_closed(self):
        return self.closed

    def close(self):
        self.closed = True

    def stat(self, path):
        if path not in self.paths:
            raise NoSuchFileOrDirectory(path)
        return FileInfo(path=path, is_directory=True)

    def resolve_absolute(self, path):
        if path.startswith("~"):
            path = self.home + path[1:]
        if path not in self.paths:
            raise NoSuchFileOrDirectory(path)
        return path

    def list_directory(self, path):
        if path not in self.paths:
            raise NoSuchFileOrDirectory(path)
        prefix = path.rstrip("/") + "/"
        return [
            FileInfo(path=p, is_directory=True)
            for p in sorted(self.paths)
            if p != path and p.startswith(prefix) and "/" not in p[len(prefix):]
        ]


class FakeBuilder:
    """Builder whose allocations can be made to fail."""

    def __init__(self, paths=None, fail_privileged=False, fail_unprivileged=False):
        self.paths = paths if paths is not None else {"/", "/home/user"}
        self.fail_privileged = fail_privileged
        self.fail_unprivileged = fail_unprivileged
        self.allocations = []
        self.unprivileged_only = False

    def allocate(self, privileged):
        self.allocations.append(privileged)
        if privileged and (self.fail_privileged or self.unprivileged_only):
            raise ConsoleAllocError("sudo denied")
        if not privileged and self.fail_unprivileged:
            raise ConsoleAllocError("sh not found")
        return FakeConsole(self.paths, privileged=privileged)

    def change_to_unprivileged(self):
        self.unprivileged_only = True


class FakeViews:
    """Records the calls made on the navigation views."""

    def __init__(self):
        self.calls = []

    def change_directory(self, view_id, path):
        self.calls.append(("change_directory", view_id, path))

    def restore_navigation_state(self, state):
        self.calls.append(("restore", state))

    def refresh(self, view_id=None):
        self.calls.append(("refresh", view_id))

    def set_disk_usage_warning_level(self, level):
        self.calls.append(("disk_level", level))


class FakeSearch:
    def __init__(self):
        self.requests = []

    def request_restore(self, request):
        self.requests.append(request)


class FakeOverlay:
    def __init__(self, open=False):
        self.open = open
        self.closed = 0

    def is_overlay_open(self):
        return self.open

    def close_overlay(self):
        self.open = False
        self.closed += 1


class Notices:
    """Notifier recording every message."""

    def __init__(self):
        self.messages = []

    def __call__(self, message, **kwargs):
        self.messages.append((message, kwargs))

    @property
    def texts(self):
        return [m for m, _ in self.messages]


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point the configuration file at a temp directory."""
    config_dir = tmp_path / ".config" / "waypoint"
    monkeypatch.setattr("waypoint.config.get_config_dir", lambda: config_dir)
    monkeypatch.setattr("waypoint.config.get_config_path", lambda: config_dir / "config.toml")
    return config_dir


@pytest.fixture
def preferences(config_dir):
    return Preferences(Config())


@pytest.fixture
def builder():
    return FakeBuilder()


@pytest.fixture
def views():
    return FakeViews()


@pytest.fixture
def search():
    return FakeSearch()


@pytest.fixture
def notices():
    return Notices()


@pytest.fixture
def clock():
    return FakeClock()
