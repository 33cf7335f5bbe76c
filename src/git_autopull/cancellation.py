"""Cooperative cancellation for sync cycles.

A `CancellationTokenSource` is created once per cycle. Components receive only
its `token`, which they poll at their checkpoints; nothing is ever interrupted
forcibly. Disposing the source drops any registered callbacks, after which the
source can no longer be cancelled.
"""

import logging
from collections.abc import Callable

from .constants import APP_NAME

logger = logging.getLogger(APP_NAME)


class CancellationToken:
    """Read-only view of a cancellation flag."""

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    def on_cancelled(self, callback: Callable[[], None]) -> None:
        """Registers a callback run once when cancellation is requested.

        Args:
            callback (Callable[[], None]): Invoked immediately if the token is
                already cancelled.
        """
        if self._cancelled:
            callback()
        else:
            self._callbacks.append(callback)


class CancellationTokenSource:
    """Owns a `CancellationToken` and the right to trigger it."""

    def __init__(self) -> None:
        self.token = CancellationToken()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def cancel(self) -> None:
        """Requests cancellation. Idempotent; a no-op once disposed."""
        token = self.token
        if self._disposed or token._cancelled:
            return
        token._cancelled = True
        callbacks, token._callbacks = token._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Cancellation callback failed: {e}")

    def dispose(self) -> None:
        """Releases registered callbacks. The flag keeps its last value."""
        self._disposed = True
        self.token._callbacks.clear()
