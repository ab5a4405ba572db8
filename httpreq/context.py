"""
Cancellation + deadline carried alongside a request.

A context is checked before every attempt and clamps each attempt's timeout
to whatever is left before the deadline. It cannot interrupt an attempt that
is already on the wire; the transport timeout does that.
"""
import threading
import time


class ContextCancelled(Exception):
    """The context was cancelled before the attempt started."""


class DeadlineExceeded(TimeoutError):
    """The context deadline passed before the attempt started."""


class RequestContext:

    def __init__(self, deadline=None, parent=None, clock=time.monotonic):
        self._clock = clock
        self._parent = parent
        self._deadline = deadline
        self._cancelled = threading.Event()

    @classmethod
    def with_timeout(cls, seconds, parent=None, clock=time.monotonic):
        """Context whose deadline is *seconds* from now."""
        return cls(deadline=clock() + seconds, parent=parent, clock=clock)

    @property
    def deadline(self):
        """Earliest deadline of this context and its parents (None = no deadline)."""
        candidates = [self._deadline]
        if self._parent is not None:
            candidates.append(self._parent.deadline)
        candidates = [d for d in candidates if d is not None]
        return min(candidates) if candidates else None

    def cancel(self):
        self._cancelled.set()

    def cancelled(self):
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent.cancelled()

    def remaining(self):
        """Seconds left before the deadline, or None when there is none."""
        deadline = self.deadline
        if deadline is None:
            return None
        return max(0.0, deadline - self._clock())

    def err(self):
        """Why the context is done, or None while it is still live."""
        if self.cancelled():
            return ContextCancelled("context canceled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            return DeadlineExceeded("context deadline exceeded")
        return None

    def done(self):
        return self.err() is not None

    def clamp(self, timeout):
        """Per-attempt timeout, never past the deadline.

        Raises DeadlineExceeded when nothing is left, since a zero timeout
        is rejected by the transport.
        """
        remaining = self.remaining()
        if remaining is None:
            return timeout
        if remaining <= 0:
            raise DeadlineExceeded("context deadline exceeded")
        return min(timeout, remaining)
