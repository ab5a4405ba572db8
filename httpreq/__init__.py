"""Fluent HTTP request builder with fixed-count retries."""

from .context import RequestContext
from .errors import RequestError, RequestFailedError
from .logs import configure_logging
from .request import RequestBuilder, new_request

__all__ = [
    "RequestBuilder",
    "RequestContext",
    "RequestError",
    "RequestFailedError",
    "configure_logging",
    "new_request",
]
