"""Double-confirmation gate for leaving the application with back."""

import time
from enum import Enum
from typing import Callable

# After this many seconds without a second press the gate resets, and the
# "press again" notice is shown again on the next press.
RELEASE_EXIT_CHECK_TIMEOUT = 3.5


class ExitDecision(Enum):
    INTERCEPTED = "intercepted"
    ALLOW_EXIT = "allow_exit"


class ExitGuard:
    """Turns a single back press at the root into a "press again" prompt."""

    def __init__(
        self,
        timeout: float = RELEASE_EXIT_CHECK_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout
        self._clock = clock
        self._armed = False
        self._armed_at: float | None = None

    @property
    def armed(self) -> bool:
        if not self._armed or self._armed_at is None:
            return False
        return (self._clock() - self._armed_at) <= self.timeout

    @property
    def armed_at(self) -> float | None:
        return self._armed_at

    def on_root_back(self) -> ExitDecision:
        """Register a back press with nothing left to go back to."""
        if self.armed:
            self.disarm()
            return ExitDecision.ALLOW_EXIT
        self._armed = True
        self._armed_at = self._clock()
        return ExitDecision.INTERCEPTED

    def disarm(self) -> None:
        self._armed = False
        self._armed_at = None
