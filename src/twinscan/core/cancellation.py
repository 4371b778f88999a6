"""Cooperative cancellation for detection runs."""

from __future__ import annotations

import threading

from twinscan.shared.errors import create_cancelled_error


class CancellationToken:
    """A caller-owned flag polled by the engine at chunk boundaries.

    Setting the flag never interrupts a computation in progress; the engine
    stops at the next checked boundary and reports a cancelled outcome.

    Example:
        >>> token = CancellationToken()
        >>> token.cancel()
        >>> token.is_cancelled
        True
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Safe to call from any thread."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str, completed: int = 0, total: int = 0) -> None:
        """Raise OperationCancelledError if cancellation was requested.

        Args:
            operation: Name of the checking operation.
            completed: Work units completed so far.
            total: Total work units planned.

        Raises:
            OperationCancelledError: If the token is cancelled.
        """
        if self._event.is_set():
            raise create_cancelled_error(operation, completed, total)


def check_cancelled(
    token: CancellationToken | None,
    operation: str,
    completed: int = 0,
    total: int = 0,
) -> None:
    """Poll an optional token."""
    if token is not None:
        token.raise_if_cancelled(operation, completed, total)


__all__ = ["CancellationToken", "check_cancelled"]
