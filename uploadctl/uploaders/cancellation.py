"""Per-session cancellation token.

A token is checked before each request is issued and again when the request
settles. While a request is in flight, the waiting thread wakes on whichever
happens first: the request finishing or the token being cancelled. A request
abandoned this way keeps running on its worker; its result is discarded.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import TypeVar

from uploadctl.core.exceptions import CancelledByUser

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancellation flag owned by exactly one upload session."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._waiters: set[threading.Event] = set()

    @property
    def cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()

    def cancel(self) -> bool:
        """Request cancellation.

        Wakes every thread blocked in :meth:`wait_for`.

        Returns:
            True on the first call, False if already cancelled.
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            waiters = list(self._waiters)

        for waiter in waiters:
            waiter.set()
        return True

    def raise_if_cancelled(self, session_id: str | None = None) -> None:
        """Raise :class:`CancelledByUser` if cancellation was requested."""
        if self._event.is_set():
            raise CancelledByUser(session_id)

    def wait_for(self, future: Future[T], session_id: str | None = None) -> T:
        """Block until ``future`` settles or the token is cancelled.

        Args:
            future: Pending request.
            session_id: Included in the raised exception.

        Returns:
            The future's result.

        Raises:
            CancelledByUser: If cancelled before or while waiting, or if the
                request settled after cancellation was requested.
            Exception: Whatever the request raised.
        """
        wake = threading.Event()

        with self._lock:
            if self._event.is_set():
                future.cancel()
                raise CancelledByUser(session_id)
            self._waiters.add(wake)

        future.add_done_callback(lambda _f: wake.set())
        try:
            wake.wait()
        finally:
            with self._lock:
                self._waiters.discard(wake)

        # Second checkpoint: a settled result loses to a pending cancellation
        if self._event.is_set():
            future.cancel()
            raise CancelledByUser(session_id)

        return future.result()
