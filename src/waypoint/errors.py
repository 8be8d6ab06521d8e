"""Exception types for Waypoint and their user-facing translation."""

from __future__ import annotations

import subprocess


class WaypointError(Exception):
    """Base class for all Waypoint errors."""


# Console command failures


class CommandError(WaypointError):
    """A command executed through the console failed."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class NoSuchFileOrDirectory(CommandError):
    """The path referenced by a command does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No such file or directory: {path}", returncode=2)
        self.path = path


class InsufficientPermissions(CommandError):
    """The console lacks the privileges needed to run a command."""


class CommandTimeout(CommandError):
    """A command did not finish within the console timeout."""


class ConsoleAllocError(WaypointError):
    """An execution backend could not be allocated."""


class BackendUnavailable(WaypointError):
    """A filesystem query was attempted while no backend is active."""


# Bootstrap failures


class BootstrapFailure(WaypointError):
    """Bootstrap could not produce a usable execution backend."""


class NoUsableBackend(BootstrapFailure):
    """No execution backend is obtainable. The session must terminate."""


class BootstrapNegotiationDeclined(BootstrapFailure):
    """The user declined the unprivileged fallback."""


# History failures


class StaleHistoryEntry(WaypointError):
    """A history entry points at a directory that no longer exists."""

    def __init__(self, position: int, path: str) -> None:
        super().__init__(f"History entry {position} is stale: {path}")
        self.position = position
        self.path = path


class UnknownHistoryKind(WaypointError, TypeError):
    """A history entry carries a payload of an unknown type."""


class NavigationFailure(WaypointError):
    """A back navigation could not be applied."""


MSG_CANT_CREATE_CONSOLE = "Can't create a console. The application will exit."
MSG_HISTORY_UNKNOWN = "Unable to navigate to the selected history entry."
MSG_PUSH_AGAIN_TO_EXIT = "Press back again to exit."


def translate_exception(exc: BaseException) -> str:
    """Convert an exception into a short message suitable for a notification.

    Args:
        exc: The exception to translate.

    Returns:
        A human readable message.
    """
    if isinstance(exc, NoSuchFileOrDirectory):
        return f"File or directory not found: {exc.path}"
    if isinstance(exc, InsufficientPermissions):
        return "Insufficient permissions to perform the operation"
    if isinstance(exc, CommandTimeout):
        return "The operation timed out"
    if isinstance(exc, CommandError):
        return f"Command failed: {exc}"
    if isinstance(exc, (ConsoleAllocError, BootstrapFailure)):
        return MSG_CANT_CREATE_CONSOLE
    if isinstance(exc, BackendUnavailable):
        return "No console is available"
    if isinstance(exc, StaleHistoryEntry):
        return f"Directory no longer exists: {exc.path}"
    if isinstance(exc, (UnknownHistoryKind, NavigationFailure)):
        return MSG_HISTORY_UNKNOWN
    if isinstance(exc, subprocess.TimeoutExpired):
        return "The operation timed out"
    if isinstance(exc, FileNotFoundError):
        return f"File or directory not found: {exc.filename}"
    if isinstance(exc, PermissionError):
        return "Insufficient permissions to perform the operation"
    if isinstance(exc, OSError):
        return f"I/O error: {exc.strerror or exc}"
    return f"Unexpected error: {exc}"
