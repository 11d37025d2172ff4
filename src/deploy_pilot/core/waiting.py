"""Cancellable wait primitive shared by every poll loop.

A :class:`CancelToken` combines an explicit cancellation signal
(:class:`threading.Event`) with an optional overall deadline.  Poll loops
never call :func:`time.sleep` directly; they call :meth:`CancelToken.sleep`
so that either signal aborts the wait promptly.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from deploy_pilot.exceptions import OperationCancelledError


class CancelToken:
    """Cancellation signal plus optional deadline.

    Parameters
    ----------
    timeout:
        Seconds from construction after which every wait fails with
        :class:`OperationCancelledError`.  ``None`` disables the deadline.
    clock:
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        timeout: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._event = threading.Event()
        self._clock = clock
        self._deadline: float | None = None if timeout is None else clock() + timeout
        self._reason = ""

    # ------------------------------------------------------------------
    # Signalling
    # ------------------------------------------------------------------

    def cancel(self, reason: str = "Operation cancelled.") -> None:
        """Request cancellation; wakes any thread blocked in :meth:`sleep`."""
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or ``None`` without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def raise_if_cancelled(self) -> None:
        """Raise :class:`OperationCancelledError` if cancelled or past deadline."""
        if self._event.is_set():
            raise OperationCancelledError(self._reason or "Operation cancelled.")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise OperationCancelledError(
                "Timed out waiting for GitHub Actions.",
                hint="Increase --timeout or check the run in GitHub Actions.",
            )

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------

    def sleep(self, seconds: float) -> None:
        """Block for *seconds* unless cancelled or the deadline passes first.

        Raises
        ------
        OperationCancelledError
            If the token is (or becomes) cancelled, or the deadline is hit.
        """
        self.raise_if_cancelled()
        remaining = self.remaining()
        wait_for = seconds if remaining is None else min(seconds, remaining)
        if wait_for > 0:
            self._event.wait(wait_for)
        self.raise_if_cancelled()
