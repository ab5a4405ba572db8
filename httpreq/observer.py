"""
Attempt observers: turn AttemptOutcome reports into log records.

Failed attempts are logged at ERROR with method/uri/payload/headers/error.
The successful attempt is logged at INFO with response_payload/status_code
added on top.
"""
import logging

import config

log = logging.getLogger(__name__)


def render_payload(data, limit=None):
    """Bytes → log-safe text, truncated to *limit* bytes."""
    if data is None:
        return ""
    if limit is None:
        limit = config.LOG_PAYLOAD_LIMIT
    if isinstance(data, str):
        data = data.encode("utf-8")
    text = data[:limit].decode("utf-8", errors="replace")
    if len(data) > limit:
        text += f"...({len(data) - limit} bytes truncated)"
    return text


class LoggingObserver:
    """Log each attempt of one logical request.

    ``fields`` is the request side of the record: method, uri, payload
    (bytes) and headers (mapping). It is captured once per do() call.
    """

    def __init__(self, fields, logger=None):
        self.logger = logger or log
        self.fields = {
            "method": fields.get("method", ""),
            "uri": fields.get("uri", ""),
            "payload": render_payload(fields.get("payload")),
            "headers": dict(fields.get("headers") or {}),
        }

    def on_attempt(self, outcome):
        if outcome.ok:
            self._log_success(outcome)
        elif outcome.timed_out:
            self.logger.error(
                "%s %s timed out (attempt %d/%d)",
                self.fields["method"], self.fields["uri"],
                outcome.attempt, outcome.total,
                extra={"http": self._record(outcome, error=str(outcome.error) or "timeout")},
            )
        else:
            self.logger.error(
                "%s %s: %s",
                self.fields["method"], self.fields["uri"], outcome.error,
                extra={"http": self._record(outcome, error=str(outcome.error))},
            )

    def _log_success(self, outcome):
        response = outcome.response
        status_code = getattr(response, "status_code", None)
        self.logger.info(
            "%s %s -> %s (attempt %d/%d, %.3fs)",
            self.fields["method"], self.fields["uri"], status_code,
            outcome.attempt, outcome.total, outcome.elapsed,
            extra={"http": self._record(
                outcome,
                response_payload=render_payload(getattr(response, "content", b"")),
                status_code=status_code,
            )},
        )

    def _record(self, outcome, **extra):
        record = dict(self.fields)
        record["attempt"] = outcome.attempt
        record.update(extra)
        return record


class CompositeObserver:
    """Fan one outcome out to several observers, in order."""

    def __init__(self, *observers):
        self.observers = [o for o in observers if o is not None]

    def on_attempt(self, outcome):
        for observer in self.observers:
            observer.on_attempt(outcome)
