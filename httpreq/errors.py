"""
Exception hierarchy for the request builder.

Setters raise the Invalid*Error family and leave the builder untouched.
do() raises MissingURIError / PayloadReadError / ResponseReadError right away,
and RequestFailedError once the attempt budget is spent.
"""


class RequestError(Exception):
    """Base class for everything raised by httpreq."""


class InvalidMethodError(RequestError, ValueError):
    pass


class InvalidURIError(RequestError, ValueError):
    pass


class InvalidTimeoutError(RequestError, ValueError):
    pass


class InvalidRetriesError(RequestError, ValueError):
    pass


class InvalidHeaderError(RequestError, ValueError):
    pass


class InvalidPayloadError(RequestError, TypeError):
    pass


class MissingURIError(RequestError):
    pass


class PayloadReadError(RequestError):
    """The request body stream could not be read into memory."""


class ResponseReadError(RequestError):
    """The response body could not be drained after a successful call."""


class BuilderConsumedError(RequestError):
    """do() was called a second time on the same builder."""


class AttemptError(RequestError):
    """A single failed attempt. Logged, never raised to the caller."""

    def __init__(self, attempt, total, cause):
        super().__init__(f"call failed at attempt {attempt} of {total}: {cause}")
        self.attempt = attempt
        self.total = total
        self.__cause__ = cause


class RequestFailedError(RequestError):
    """Every attempt failed.

    The message stays generic; ``outcomes`` holds one AttemptOutcome per
    attempt for callers that want the details.
    """

    def __init__(self, outcomes):
        n = len(outcomes)
        super().__init__(f"request failed after {n} attempt{'' if n == 1 else 's'}")
        self.outcomes = list(outcomes)

    @property
    def last_error(self):
        for outcome in reversed(self.outcomes):
            if outcome.error is not None:
                return outcome.error
        return None
