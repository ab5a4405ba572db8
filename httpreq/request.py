"""
Fluent HTTP request builder with fixed-count retries.

    resp = (
        new_request()
        .set_method("POST")
        .set_uri("https://api.example.com/items")
        .set_header("Content-Type", "application/json")
        .set_payload(b'{"name": "widget"}')
        .set_timeout(10)
        .set_retries(2)
        .do()
    )

Setters raise a RequestError subclass on bad input and leave the builder as
it was. A builder sends exactly one logical request; build a new one for the
next call.
"""
import datetime as dt
import io
import logging

import requests as http_requests
from requests.cookies import RequestsCookieJar
from requests.structures import CaseInsensitiveDict
from urllib3.exceptions import LocationParseError
from urllib3.util import parse_url

import config
from httpreq.errors import (
    BuilderConsumedError,
    InvalidHeaderError,
    InvalidMethodError,
    InvalidPayloadError,
    InvalidRetriesError,
    InvalidTimeoutError,
    InvalidURIError,
    MissingURIError,
    PayloadReadError,
    RequestFailedError,
    ResponseReadError,
)
from httpreq.observer import CompositeObserver, LoggingObserver
from httpreq.retry import attempts_for, run_attempts

log = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE")
ALLOWED_SCHEMES = ("http", "https")


class RequestBuilder:

    def __init__(self, logger=None, observer=None, session_factory=http_requests.Session):
        self.logger = logger or log
        self.observer = observer
        self.session_factory = session_factory

        self.method = "GET"
        self.uri = ""
        self.headers = CaseInsensitiveDict()
        self.cookies = RequestsCookieJar()
        self.payload = None
        self.body_stream = None
        self.timeout = config.HTTP_TIMEOUT
        self.retries = config.HTTP_RETRIES
        self.context = None

        self._attempts = []
        self._consumed = False

    # -- Configuration --
    def set_context(self, ctx):
        self.context = ctx
        return self

    def set_method(self, method):
        if method not in ALLOWED_METHODS:
            self.logger.error("Invalid/Unsupported http method: %s", method)
            raise InvalidMethodError(f"unsupported http method: {method!r}")
        self.method = method
        return self

    def set_uri(self, uri):
        """Validate and store the target URL (absolute http/https only)."""
        if not isinstance(uri, str):
            self.logger.error("Invalid URL %r", uri)
            raise InvalidURIError(f"URL must be a string, got {type(uri).__name__}")
        try:
            parsed = parse_url(uri.strip())
        except LocationParseError as e:
            self.logger.error("Invalid URL %s", uri)
            raise InvalidURIError(f"invalid URL {uri!r}: {e}") from e

        if not parsed.scheme or not parsed.host:
            self.logger.error("Invalid URL %s", uri)
            raise InvalidURIError(f"invalid URL {uri!r}: scheme and host are required")
        if parsed.scheme.lower() not in ALLOWED_SCHEMES:
            self.logger.error("Invalid URL %s", uri)
            raise InvalidURIError(f"invalid URL {uri!r}: unsupported scheme {parsed.scheme!r}")

        self.uri = uri.strip()
        return self

    def set_payload(self, payload):
        """Use *payload* (bytes, or str encoded as UTF-8) as the request body."""
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        elif isinstance(payload, (bytes, bytearray, memoryview)):
            payload = bytes(payload)
        else:
            self.logger.error("Invalid payload type: %s", type(payload).__name__)
            raise InvalidPayloadError(f"payload must be bytes or str, got {type(payload).__name__}")
        self.payload = payload
        self.body_stream = None
        return self

    def set_payload_from_reader(self, stream):
        """Use a file-like object (or an iterable of byte chunks) as the body.

        Nothing is read until do(), which buffers the whole stream once so
        every attempt can resend it.
        """
        if isinstance(stream, (bytes, bytearray, str)):
            self.logger.error("Invalid payload stream: in-memory %s", type(stream).__name__)
            raise InvalidPayloadError("use set_payload() for in-memory payloads")
        if not hasattr(stream, "read") and not hasattr(stream, "__iter__"):
            self.logger.error("Invalid payload stream: %s", type(stream).__name__)
            raise InvalidPayloadError(f"payload stream must be readable, got {type(stream).__name__}")
        self.body_stream = stream
        self.payload = None
        return self

    def set_header(self, key, value):
        """Set one header; last write per key (case-insensitive) wins.

        A manual ``Cookie`` header cannot be combined with set_cookie(),
        because requests drops jar cookies when the header is present.
        """
        if not isinstance(key, str) or not key or not isinstance(value, (str, bytes)):
            self.logger.error("Invalid header %r: %r", key, value)
            raise InvalidHeaderError(f"header name and value must be strings, got {key!r}: {value!r}")
        if key.lower() == "cookie" and len(self.cookies):
            self.logger.error("Cookie header conflicts with cookies already set")
            raise InvalidHeaderError("Cookie header cannot be combined with set_cookie()")
        self.headers[key] = value
        return self

    def set_cookie(self, name, value, **attrs):
        """Add a cookie; *attrs* go to requests.cookies.create_cookie (domain, path, ...)."""
        if "Cookie" in self.headers:
            self.logger.error("Cookie %s conflicts with the Cookie header", name)
            raise InvalidHeaderError("set_cookie() cannot be combined with a Cookie header")
        self.cookies.set(name, value, **attrs)
        return self

    def set_timeout(self, timeout):
        """Per-attempt timeout in seconds (number or datetime.timedelta)."""
        if isinstance(timeout, dt.timedelta):
            timeout = timeout.total_seconds()
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            self.logger.error("Invalid timeout: %r", timeout)
            raise InvalidTimeoutError(f"timeout must be a positive number of seconds, got {timeout!r}")
        self.timeout = float(timeout)
        return self

    def set_retries(self, retries):
        """Retries after the first attempt; total attempts = retries + 1."""
        if isinstance(retries, bool) or not isinstance(retries, int) or retries < 0:
            self.logger.error("Invalid retry count: %r", retries)
            raise InvalidRetriesError(f"retries must be a non-negative integer, got {retries!r}")
        self.retries = retries
        return self

    # -- Introspection --
    @property
    def attempts(self):
        """AttemptOutcome for every attempt made by do()."""
        return list(self._attempts)

    def logged_headers(self):
        """Header mapping as logged; cookies are mirrored into ``Cookie``."""
        headers = CaseInsensitiveDict(self.headers)
        if len(self.cookies):
            headers["Cookie"] = "; ".join(f"{c.name}={c.value}" for c in self.cookies)
        return dict(headers)

    # -- Execution --
    def do(self):
        """Send the request, retrying transport failures.

        Returns the first successful requests.Response with its body already
        buffered in memory. Raises RequestFailedError once every attempt has
        failed.
        """
        if self._consumed:
            raise BuilderConsumedError("request already sent; build a new one")
        if not self.uri:
            self.logger.error("Request URI must be specified")
            raise MissingURIError("request URI must be specified")
        self._consumed = True

        if not self.payload and self.body_stream is not None:
            self.payload = self._read_stream()
            self.body_stream = None

        observer = CompositeObserver(
            LoggingObserver({
                "method": self.method,
                "uri": self.uri,
                "payload": self.payload,
                "headers": self.logged_headers(),
            }, logger=self.logger),
            self.observer,
        )
        total = attempts_for(self.retries)
        self.logger.debug("Sending %s %s (up to %d attempts)", self.method, self.uri, total)

        with self.session_factory() as session:
            prepared = self._prepare(session)

            def send(attempt):
                timeout = self.timeout
                if self.context is not None:
                    timeout = self.context.clamp(timeout)
                response = session.send(prepared, timeout=timeout, stream=True)
                return self._buffer_response(response)

            try:
                response, self._attempts = run_attempts(
                    send, attempts=total, observer=observer, context=self.context,
                )
            except RequestFailedError as e:
                self._attempts = e.outcomes
                self.logger.error("%s %s failed after %d attempts", self.method, self.uri, total)
                raise

        return response

    def _prepare(self, session):
        """Build the one PreparedRequest every attempt resends.

        The builder stays usable when this fails; the body is already buffered.
        """
        try:
            return session.prepare_request(http_requests.Request(
                method=self.method,
                url=self.uri,
                headers=dict(self.headers),
                cookies=self.cookies,
                data=self.payload,
            ))
        except http_requests.exceptions.InvalidHeader as e:
            self._consumed = False
            self.logger.error("Invalid header for %s: %s", self.uri, e)
            raise InvalidHeaderError(str(e)) from e
        except http_requests.exceptions.RequestException as e:
            self._consumed = False
            self.logger.error("Invalid URL %s: %s", self.uri, e)
            raise InvalidURIError(str(e)) from e

    def _read_stream(self):
        stream = self.body_stream
        try:
            if hasattr(stream, "read"):
                data = _as_bytes(stream.read())
            else:
                data = b"".join(_as_bytes(chunk) for chunk in stream)
        except (OSError, ValueError, TypeError) as e:
            self.logger.error("Reading request payload failed: %s", e)
            raise PayloadReadError(f"reading request payload failed: {e}") from e
        return data

    def _buffer_response(self, response):
        """Drain the body and swap ``raw`` for an in-memory reader."""
        try:
            body = response.content
        except (http_requests.exceptions.RequestException, OSError) as e:
            response.close()
            self.logger.error("Reading response body from %s failed: %s", self.uri, e)
            raise ResponseReadError(f"reading response body failed: {e}") from e
        response.close()
        response.raw = io.BytesIO(body)
        return response


def _as_bytes(chunk):
    if chunk is None:
        return b""
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    if isinstance(chunk, (bytes, bytearray, memoryview)):
        return bytes(chunk)
    raise TypeError(f"payload chunks must be bytes or str, got {type(chunk).__name__}")


def new_request(logger=None, observer=None, session_factory=http_requests.Session):
    """Start a new request with defaults from config (GET, HTTP_TIMEOUT, HTTP_RETRIES)."""
    return RequestBuilder(logger=logger, observer=observer, session_factory=session_factory)
