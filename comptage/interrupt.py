"""SIGINT handling.

The handler records the signal, then raises KeyboardInterrupt so blocking
waits (the password prompt, psycopg2's wait_select) unwind at once.
wait_select answers it by cancelling the running statement; the flag then
tells the main flow that the resulting query error was a user interrupt.
The connection is always closed by whoever opened it.
"""
import signal
from contextlib import contextmanager
from typing import Iterator

from .errors import Interrupted


class CancellationFlag:
    """Set from a signal handler, checked by the main flow."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def handle_signal(self, signum, frame) -> None:
        self.cancel()
        raise KeyboardInterrupt

    def check(self) -> None:
        """Raise Interrupted if a signal arrived."""
        if self._cancelled:
            raise Interrupted("interrupted by user")


@contextmanager
def cancellation(signum: int = signal.SIGINT) -> Iterator[CancellationFlag]:
    """Install a CancellationFlag for *signum*, restoring the old handler after."""
    flag = CancellationFlag()
    previous = signal.signal(signum, flag.handle_signal)
    try:
        yield flag
    finally:
        signal.signal(signum, previous)
