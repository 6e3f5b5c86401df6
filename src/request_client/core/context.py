"""Cancellable request context with an optional deadline."""

import threading
import time
from typing import Optional

from .exceptions import CancelledError, DeadlineExceededError


class RequestContext:
    """Governs one or more calls: carries a cancellation flag and a deadline.

    The deadline is an absolute ``time.monotonic()`` value. Contexts derived
    with :meth:`with_timeout` share the parent's cancellation event, so
    cancelling the parent cancels every derived context, and they never
    extend the parent's deadline.

    Attributes:
        deadline: Absolute monotonic deadline, or None for no deadline

    Example:
        >>> ctx = RequestContext.with_deadline_in(5.0)
        >>> threading.Timer(1.0, ctx.cancel).start()
        >>> client.do(ctx, RequestSpec("GET", "/slow"))  # CancelledError after ~1s
    """

    __slots__ = ("_cancel_event", "deadline")

    def __init__(
        self,
        deadline: Optional[float] = None,
        _cancel_event: Optional[threading.Event] = None,
    ):
        self._cancel_event = _cancel_event or threading.Event()
        self.deadline = deadline

    @classmethod
    def background(cls) -> "RequestContext":
        """Context without deadline that is only cancelled explicitly."""
        return cls()

    @classmethod
    def with_deadline_in(cls, seconds: float) -> "RequestContext":
        """Context whose deadline elapses ``seconds`` from now."""
        return cls(deadline=time.monotonic() + seconds)

    def with_timeout(self, seconds: Optional[float]) -> "RequestContext":
        """
        Derive a context bounded by ``seconds`` from now.

        The narrower of the current deadline and the new one governs.
        ``None`` keeps the current deadline.
        """
        deadline = self.deadline
        if seconds is not None:
            candidate = time.monotonic() + seconds
            if deadline is None or candidate < deadline:
                deadline = candidate
        return RequestContext(deadline=deadline, _cancel_event=self._cancel_event)

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline (never negative), None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def raise_if_done(self) -> None:
        """
        Raise if the context can no longer govern work.

        Raises:
            CancelledError: context was cancelled
            DeadlineExceededError: deadline elapsed
        """
        if self._cancel_event.is_set():
            raise CancelledError()
        if self.expired:
            raise DeadlineExceededError()

    def wait(self, seconds: float) -> None:
        """
        Sleep ``seconds``, waking immediately on cancellation.

        The sleep is clipped to the deadline, so a wait that would outlive
        it ends at the deadline with DeadlineExceededError.

        Raises:
            CancelledError: context cancelled before or during the wait
            DeadlineExceededError: deadline elapsed before or during the wait
        """
        self.raise_if_done()

        remaining = self.remaining()
        clipped = remaining is not None and remaining <= seconds
        timeout = remaining if clipped else seconds
        if timeout > 0:
            self._cancel_event.wait(timeout)

        if self._cancel_event.is_set():
            raise CancelledError()
        if clipped:
            raise DeadlineExceededError()
        self.raise_if_done()

    def __repr__(self) -> str:
        return (
            f"RequestContext(cancelled={self.cancelled}, "
            f"remaining={self.remaining()})"
        )
