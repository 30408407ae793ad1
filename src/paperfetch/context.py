"""
Cancellation and deadline handling for network operations.

Every call that touches the metadata service or streams an artifact accepts a
:class:`CallContext`. The context is checked before a request is sent, once the
response headers arrive, and before each body chunk is written, so a cancelled
or expired call stops at the next check and never produces a completed result.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from paperfetch.exceptions import DeadlineExceededError, OperationCancelledError


class CancellationToken:
    """Thread-safe token for cooperative cancellation.

    Examples:
        >>> token = CancellationToken()
        >>> token.cancel()
        >>> token.is_cancelled()
        True
    """

    def __init__(self) -> None:
        self._is_cancelled = threading.Event()

    def cancel(self) -> None:
        """Signal that cancellation has been requested."""
        self._is_cancelled.set()

    def is_cancelled(self) -> bool:
        return self._is_cancelled.is_set()


class CallContext:
    """
    Cancellation token plus an optional absolute deadline.

    The deadline is measured on the monotonic clock and bounds everything run
    under the context, body transfer included, not just connection setup.
    Individual requests derive a :meth:`child` with their own per-request
    deadline.
    """

    def __init__(
        self,
        token: Optional[CancellationToken] = None,
        deadline: Optional[float] = None,
    ) -> None:
        self.token = token or CancellationToken()
        self.deadline = deadline

    @classmethod
    def with_timeout(
        cls, seconds: Optional[float], token: Optional[CancellationToken] = None
    ) -> "CallContext":
        """
        Build a context whose deadline is ``seconds`` from now.

        A ``None`` or non-positive timeout yields a context without a deadline.
        """
        if seconds is None or seconds <= 0:
            return cls(token=token)
        return cls(token=token, deadline=time.monotonic() + seconds)

    def child(self, seconds: Optional[float]) -> "CallContext":
        """
        Context for one network call: same token, deadline ``seconds`` from now.

        The caller's own deadline stays an outer bound, so the child expires at
        whichever comes first. A ``None`` or non-positive ``seconds`` keeps only
        the caller's deadline.
        """
        deadline = self.deadline
        if seconds is not None and seconds > 0:
            own = time.monotonic() + seconds
            deadline = own if deadline is None else min(deadline, own)
        return CallContext(token=self.token, deadline=deadline)

    def cancel(self) -> None:
        self.token.cancel()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is no deadline."""
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def check(self, operation: str = "operation") -> None:
        """
        Raise if the call was cancelled or has run past its deadline.

        Raises:
            OperationCancelledError: The token was cancelled.
            DeadlineExceededError: The deadline has passed.
        """
        if self.token.is_cancelled():
            raise OperationCancelledError(f"{operation} cancelled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise DeadlineExceededError(f"{operation} exceeded its deadline")

    def request_timeout(self, default: float) -> float:
        """
        Timeout to hand to a single ``requests`` call.

        The configured timeout, shortened to whatever is left of the deadline.
        """
        remaining = self.remaining()
        if remaining is None:
            return default
        return max(min(default, remaining), 0.001)


def background() -> CallContext:
    """A context that is never cancelled and has no deadline."""
    return CallContext()
