"""Cooperative cancellation for changelog runs.

Long pagination chains against a live API need a cutoff. A CancelToken is
checked between requests: before every page fetch and before every event
fetch. Requests already in flight are left to finish.
"""

from __future__ import annotations

import logging
import time

logger = logging.getLogger(__name__)


class OperationCancelledError(Exception):
    """The run was cancelled or exceeded its deadline."""


class CancelToken:
    """Caller-controlled cancellation signal with an optional deadline."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize the token.

        Args:
            timeout: Seconds from now after which the token reports
                cancelled. None means no deadline.
        """
        self._cancelled = False
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Request cancellation at the next checkpoint."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        """Whether cancel() was called or the deadline has passed."""
        if self._cancelled:
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self, where: str = "") -> None:
        """Raise OperationCancelledError if the token is cancelled.

        Args:
            where: Short description of the checkpoint, used in the message.
        """
        if not self.cancelled:
            return
        reason = "deadline exceeded" if not self._cancelled else "cancelled"
        message = f"Changelog run {reason}" + (f" before {where}" if where else "")
        logger.info(message)
        raise OperationCancelledError(message)
