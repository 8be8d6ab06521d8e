"""Execution backend bootstrap and the slot holding the active console."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from .config import Preferences, Setting
from .errors import (
    BackendUnavailable,
    BootstrapNegotiationDeclined,
    CommandError,
    ConsoleAllocError,
    NoUsableBackend,
)

if TYPE_CHECKING:
    from .console import FileInfo, ShellConsole

logger = logging.getLogger(__name__)


class Builder(Protocol):
    """Creates consoles. Implemented by `ConsoleBuilder`."""

    def allocate(self, privileged: bool) -> "ShellConsole": ...
    def change_to_unprivileged(self) -> None: ...


class BootstrapState(Enum):
    """Outcome of `BackendBootstrap.ensure_backend`."""

    ACTIVE = "active"
    NEGOTIATING = "negotiating"


class BackendSlot:
    """Holds the single active console of the session.

    The slot is empty until bootstrap succeeds. Filesystem queries made
    through the slot are forwarded to the active console and raise
    `BackendUnavailable` while the slot is empty.
    """

    def __init__(self) -> None:
        self._console: ShellConsole | None = None

    @property
    def console(self) -> "ShellConsole | None":
        return self._console

    def is_active(self) -> bool:
        return self._console is not None

    @property
    def is_privileged(self) -> bool:
        return self._console is not None and self._console.privileged

    def replace(self, console: "ShellConsole") -> None:
        """Install a console, closing the one it replaces."""
        previous = self._console
        self._console = console
        if previous is not None and previous is not console:
            previous.close()

    def require(self) -> "ShellConsole":
        if self._console is None:
            raise BackendUnavailable("No console has been allocated")
        return self._console

    def stat(self, path: str) -> "FileInfo":
        return self.require().stat(path)

    def resolve_absolute(self, path: str) -> str:
        return self.require().resolve_absolute(path)

    def list_directory(self, path: str) -> list["FileInfo"]:
        return self.require().list_directory(path)


class BackendBootstrap:
    """Obtains a console for the session, negotiating a fallback on failure.

    `ensure_backend` allocates the console preferred by the configuration.
    When that fails and console selection is allowed, it reports
    `BootstrapState.NEGOTIATING`: the caller must ask the user and then call
    `accept_fallback` or `decline_fallback`.
    """

    def __init__(self, slot: BackendSlot, builder: Builder, preferences: Preferences) -> None:
        self.slot = slot
        self.builder = builder
        self.preferences = preferences
        self._negotiating = False

    @property
    def negotiating(self) -> bool:
        return self._negotiating

    def ensure_backend(self) -> BootstrapState:
        """Make sure a console is active.

        Returns:
            `ACTIVE` when a console is installed, `NEGOTIATING` when the
            user must choose whether to fall back to a non-privileged console.

        Raises:
            NoUsableBackend: Allocation failed and console selection is not allowed.
        """
        if self.slot.is_active():
            return BootstrapState.ACTIVE
        if self._negotiating:
            return BootstrapState.NEGOTIATING

        privileged = bool(self.preferences.get(Setting.SUPERUSER_MODE, False))
        try:
            console = self.builder.allocate(privileged)
        except ConsoleAllocError as e:
            logger.error("Can't create console (privileged=%s): %s", privileged, e)
            allow_selection = bool(
                self.preferences.get(Setting.ALLOW_CONSOLE_SELECTION, False)
            )
            if not allow_selection:
                raise NoUsableBackend(str(e)) from e
            self._negotiating = True
            return BootstrapState.NEGOTIATING

        self.slot.replace(console)
        return BootstrapState.ACTIVE

    def accept_fallback(self) -> None:
        """Fall back to a non-privileged console.

        On success the configuration is changed so later sessions start
        with a non-privileged console and keep console selection enabled.

        Raises:
            NoUsableBackend: The non-privileged console cannot be allocated either.
        """
        if not self._negotiating:
            raise RuntimeError("No console negotiation in progress")
        self._negotiating = False

        try:
            self.builder.change_to_unprivileged()
            console = self.builder.allocate(False)
        except (ConsoleAllocError, CommandError) as e:
            logger.error("Non-privileged fallback failed: %s", e)
            raise NoUsableBackend(str(e)) from e

        self.slot.replace(console)
        logger.info("Fell back to a non-privileged console")

        try:
            # One write carries both flags
            self.preferences.set(Setting.ALLOW_CONSOLE_SELECTION, True)
            self.preferences.set(Setting.SUPERUSER_MODE, False, persist_immediately=True)
        except OSError as e:
            # The console is usable; the next session negotiates again
            logger.error("Unable to save console settings: %s", e)

    def decline_fallback(self) -> None:
        """Abort the negotiation at the user's request."""
        self._negotiating = False
        logger.info("Console fallback declined")
        raise BootstrapNegotiationDeclined("Fallback to a non-privileged console declined")

    def switch_console(self, privileged: bool) -> None:
        """Replace the active console with a new one of the requested kind.

        The current console stays active if allocation fails.

        Raises:
            ConsoleAllocError: The new console cannot be created.
        """
        if self.slot.is_active() and self.slot.is_privileged == privileged:
            return
        console = self.builder.allocate(privileged)
        self.slot.replace(console)
        logger.info("Switched to %s console", "privileged" if privileged else "non-privileged")
        try:
            self.preferences.set(Setting.SUPERUSER_MODE, privileged, persist_immediately=True)
        except OSError as e:
            logger.error("Unable to save console settings: %s", e)
