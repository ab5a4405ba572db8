"""
Fixed-count retry loop for HTTP requests.

attempts = retries + 1, so retries=0 means exactly one call.
Retries on: ConnectionError, Timeout, any other requests transport error,
            cancelled / expired RequestContext
Does NOT retry on: HTTP status codes (any response is a success)
No delay between attempts. First success wins.

The loop does no logging itself: every attempt is reported to an observer
with an ``on_attempt(outcome)`` method (see httpreq.observer).
"""
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests as http_requests

from httpreq.context import ContextCancelled, DeadlineExceeded
from httpreq.errors import AttemptError, RequestFailedError

# Exceptions that fail a single attempt and move on to the next one
RETRYABLE_EXCEPTIONS = (
    http_requests.exceptions.RequestException,
    ContextCancelled,
    DeadlineExceeded,
)

# Subset of the above that is reported as a timeout
TIMEOUT_EXCEPTIONS = (
    http_requests.exceptions.Timeout,
    DeadlineExceeded,
)


@dataclass
class AttemptOutcome:
    attempt: int
    total: int
    elapsed: float
    response: Optional[Any] = None
    error: Optional[BaseException] = None
    timed_out: bool = False

    @property
    def ok(self):
        return self.error is None


def attempts_for(retries):
    """Total attempt budget for a retry count."""
    return retries + 1


def run_attempts(send, *, attempts, observer=None, context=None):
    """Call *send* up to *attempts* times until it returns.

    Parameters
    ----------
    send : callable
        One-arg callable taking the 1-based attempt number and returning the
        response. Exceptions outside RETRYABLE_EXCEPTIONS propagate at once.
    attempts : int
        Total attempt budget (>= 1).
    observer : object, optional
        Anything with ``on_attempt(outcome)``; called once per attempt.
    context : RequestContext, optional
        Checked before each attempt; a done context fails that attempt.

    Returns
    -------
    (response, outcomes)

    Raises
    ------
    RequestFailedError
        When every attempt failed. ``outcomes`` is attached and the last
        underlying error is chained as ``__cause__``.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    outcomes = []
    last_exc = None

    for attempt in range(1, attempts + 1):
        started = time.monotonic()
        try:
            if context is not None:
                err = context.err()
                if err is not None:
                    raise err
            response = send(attempt)
        except RETRYABLE_EXCEPTIONS as exc:
            last_exc = exc
            timed_out = isinstance(exc, TIMEOUT_EXCEPTIONS)
            outcome = AttemptOutcome(
                attempt=attempt,
                total=attempts,
                elapsed=time.monotonic() - started,
                error=exc if timed_out else AttemptError(attempt, attempts, exc),
                timed_out=timed_out,
            )
            outcomes.append(outcome)
            _notify(observer, outcome)
            continue

        outcome = AttemptOutcome(
            attempt=attempt,
            total=attempts,
            elapsed=time.monotonic() - started,
            response=response,
        )
        outcomes.append(outcome)
        _notify(observer, outcome)
        return response, outcomes

    raise RequestFailedError(outcomes) from last_exc


def _notify(observer, outcome):
    if observer is not None:
        observer.on_attempt(outcome)
