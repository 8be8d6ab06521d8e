"""Shell consoles used to run filesystem commands.

A console is the execution backend every filesystem query goes through.
The unprivileged console runs commands as the current user; the privileged
console runs them through non-interactive ``sudo``.
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass

from .errors import (
    CommandError,
    CommandTimeout,
    ConsoleAllocError,
    InsufficientPermissions,
    NoSuchFileOrDirectory,
)

logger = logging.getLogger(__name__)

ROOT_DIRECTORY = "/"

# Seconds before a console command is abandoned
COMMAND_TIMEOUT = 10

# Exit code reserved by the scripts below for a missing path
_EXIT_NOT_FOUND = 2

_STAT_SCRIPT = (
    'if [ ! -e "$1" ]; then exit 2; fi; '
    'if [ -d "$1" ]; then echo d; else echo f; fi'
)
_RESOLVE_SCRIPT = 'if [ ! -e "$1" ]; then exit 2; fi; cd -- "$1" && pwd -P'
_LIST_SCRIPT = 'if [ ! -e "$1" ]; then exit 2; fi; ls -1Ap -- "$1"'


@dataclass(frozen=True)
class FileInfo:
    """Metadata of a filesystem object as reported by a console."""

    path: str
    is_directory: bool

    @property
    def name(self) -> str:
        return os.path.basename(self.path.rstrip("/")) or self.path


class ShellConsole:
    """Runs commands through ``sh``, optionally elevated with ``sudo -n``."""

    def __init__(self, shell: str, privileged: bool = False, sudo: str | None = None) -> None:
        self.shell = shell
        self.privileged = privileged
        self.sudo = sudo
        self._closed = False

    def __repr__(self) -> str:
        kind = "privileged" if self.privileged else "unprivileged"
        return f"<ShellConsole {kind} shell={self.shell!r}>"

    @property
    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the console. Further commands raise `CommandError`."""
        self._closed = True

    def _argv(self, args: list[str]) -> list[str]:
        if self.privileged:
            return [self.sudo or "sudo", "-n", *args]
        return args

    def execute(self, args: list[str]) -> subprocess.CompletedProcess:
        """Run a command and return the completed process.

        Raises:
            CommandError: The console is closed or the command could not start.
            CommandTimeout: The command exceeded `COMMAND_TIMEOUT`.
        """
        if self._closed:
            raise CommandError("Console is closed")
        argv = self._argv(args)
        logger.debug("Executing: %s", argv)
        try:
            return subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=COMMAND_TIMEOUT,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandTimeout(f"Command timed out: {argv[0]}") from e
        except OSError as e:
            raise CommandError(f"Unable to run {argv[0]}: {e}") from e

    def _run_script(self, script: str, path: str) -> str:
        result = self.execute([self.shell, "-c", script, "sh", path])
        if result.returncode == _EXIT_NOT_FOUND:
            raise NoSuchFileOrDirectory(path)
        if result.returncode != 0:
            stderr = result.stderr.strip()
            if "permission denied" in stderr.lower() or "password" in stderr.lower():
                raise InsufficientPermissions(stderr, result.returncode)
            raise CommandError(stderr or f"exit status {result.returncode}", result.returncode)
        return result.stdout

    def stat(self, path: str) -> FileInfo:
        """Get the metadata of a path.

        Raises:
            NoSuchFileOrDirectory: The path does not exist.
            CommandError: The query failed.
        """
        output = self._run_script(_STAT_SCRIPT, path).strip()
        return FileInfo(path=path, is_directory=output == "d")

    def resolve_absolute(self, path: str) -> str:
        """Resolve a directory path to its absolute, symlink-free form."""
        expanded = os.path.expanduser(path)
        output = self._run_script(_RESOLVE_SCRIPT, expanded).strip()
        if not output:
            raise CommandError(f"Unable to resolve {path}")
        return output

    def list_directory(self, path: str) -> list[FileInfo]:
        """List the entries of a directory."""
        output = self._run_script(_LIST_SCRIPT, path)
        entries = []
        for line in output.splitlines():
            if not line:
                continue
            is_directory = line.endswith("/")
            name = line.rstrip("/")
            entries.append(FileInfo(path=os.path.join(path, name), is_directory=is_directory))
        return entries


class ConsoleBuilder:
    """Allocates consoles for the backend slot."""

    def __init__(self, shell: str = "sh") -> None:
        self.shell = shell
        self._privileged_disabled = False

    def allocate(self, privileged: bool) -> ShellConsole:
        """Create a console.

        Args:
            privileged: Request a console that runs commands through sudo.

        Raises:
            ConsoleAllocError: The console cannot be created.
        """
        shell = shutil.which(self.shell)
        if shell is None:
            raise ConsoleAllocError(f"Shell not found: {self.shell}")

        if not privileged:
            logger.info("Allocated non-privileged console (%s)", shell)
            return ShellConsole(shell)

        if self._privileged_disabled:
            raise ConsoleAllocError("Privileged consoles are disabled")

        sudo = shutil.which("sudo")
        if sudo is None:
            raise ConsoleAllocError("sudo not found")

        try:
            result = subprocess.run(
                [sudo, "-n", "true"],
                capture_output=True,
                text=True,
                timeout=COMMAND_TIMEOUT,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            raise ConsoleAllocError(f"Unable to run sudo: {e}") from e

        if result.returncode != 0:
            raise ConsoleAllocError(
                f"Privileged console denied: {result.stderr.strip() or result.returncode}"
            )

        logger.info("Allocated privileged console (%s)", shell)
        return ShellConsole(shell, privileged=True, sudo=sudo)

    def change_to_unprivileged(self) -> None:
        """Stop handing out privileged consoles for the rest of the session."""
        self._privileged_disabled = True
