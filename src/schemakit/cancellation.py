"""
Cooperative cancellation for driver operations.

Drivers check the signal before every statement they issue. While a
statement runs, cancelling a CancellationToken invokes the interrupt callback
the driver registered for that statement (the DB-API connection's native
cancel); whatever the driver raises in response propagates unchanged.
"""
import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager, nullcontext
from typing import Any

from schemakit.exceptions import OperationCancelled

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe cancellation signal with an optional timeout.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], Any]] = []
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Signal cancellation and interrupt any statement in flight."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for callback in callbacks:
            logger.debug(f'Interrupting statement in flight via {callback!r}')
            callback()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the timeout, None without a timeout."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelled('Operation cancelled before execution')

    @contextmanager
    def on_cancel(self, callback: Callable[[], Any]) -> Iterator[None]:
        """Register an interrupt callback for the duration of a statement.
        """
        timer = None
        with self._lock:
            self._callbacks.append(callback)
        remaining = self.remaining()
        if remaining is not None:
            timer = threading.Timer(remaining, self.cancel)
            timer.daemon = True
            timer.start()
        try:
            yield
        finally:
            if timer is not None:
                timer.cancel()
            with self._lock:
                self._callbacks.remove(callback)


def raise_if_cancelled(cancel: Any) -> None:
    """Check a CancellationToken, a threading.Event or None."""
    if cancel is None:
        return
    if isinstance(cancel, CancellationToken):
        cancel.raise_if_cancelled()
    elif cancel.is_set():
        raise OperationCancelled('Operation cancelled before execution')


def interrupt_scope(cancel: Any, interrupt: Callable[[], Any] | None):
    """Context manager wiring a statement's interrupt into the signal."""
    if isinstance(cancel, CancellationToken) and interrupt is not None:
        return cancel.on_cancel(interrupt)
    return nullcontext()
