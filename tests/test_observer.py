"""Tests for attempt logging and the JSON log formatter."""

import io
import json
import logging

import requests

from httpreq import logs
from httpreq.errors import AttemptError
from httpreq.observer import CompositeObserver, LoggingObserver, render_payload
from httpreq.retry import AttemptOutcome

FIELDS = {
    "method": "POST",
    "uri": "https://api.example.com/items",
    "payload": b'{"a": 1}',
    "headers": {"Content-Type": "application/json", "Cookie": "session=abc"},
}


def test_render_payload_truncates_and_decodes():
    assert render_payload(None) == ""
    assert render_payload(b"hello") == "hello"
    assert render_payload(b"\xff\xfeok") == "\ufffd\ufffdok"
    assert render_payload(b"abcdef", limit=3) == "abc...(3 bytes truncated)"


def test_failed_attempt_logged_at_error(caplog):
    caplog.set_level(logging.INFO)
    cause = requests.exceptions.ConnectionError("refused")
    outcome = AttemptOutcome(attempt=1, total=3, elapsed=0.01, error=AttemptError(1, 3, cause))
    LoggingObserver(FIELDS).on_attempt(outcome)

    (record,) = caplog.records
    assert record.levelno == logging.ERROR
    assert record.http["method"] == "POST"
    assert record.http["uri"] == FIELDS["uri"]
    assert record.http["payload"] == '{"a": 1}'
    assert record.http["headers"]["Cookie"] == "session=abc"
    assert "refused" in record.http["error"]


def test_success_logged_at_info_with_response_fields(caplog):
    caplog.set_level(logging.INFO)
    response = requests.Response()
    response.status_code = 200
    response._content = b"done"
    outcome = AttemptOutcome(attempt=2, total=3, elapsed=0.2, response=response)
    LoggingObserver(FIELDS, logger=logging.getLogger("custom")).on_attempt(outcome)

    (record,) = caplog.records
    assert record.name == "custom"
    assert record.levelno == logging.INFO
    assert record.http["status_code"] == 200
    assert record.http["response_payload"] == "done"
    assert record.http["attempt"] == 2


def test_composite_observer_skips_none():
    seen = []

    class Recorder:
        def on_attempt(self, outcome):
            seen.append(outcome.attempt)

    CompositeObserver(Recorder(), None, Recorder()).on_attempt(
        AttemptOutcome(attempt=1, total=1, elapsed=0.0, response="ok")
    )
    assert seen == [1, 1]


def test_json_formatter_includes_http_fields():
    record = logging.LogRecord("httpreq.request", logging.INFO, __file__, 1, "GET %s", ("x",), None)
    record.http = {"method": "GET", "status_code": 200}
    payload = json.loads(logs.JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["msg"] == "GET x"
    assert payload["http"] == {"method": "GET", "status_code": 200}


def test_configure_logging_is_idempotent(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(logs, "_LOGGER_INITIALIZED", False)
    monkeypatch.setattr(root, "handlers", list(root.handlers))
    level = root.level
    before = len(root.handlers)

    stream = io.StringIO()
    try:
        logs.configure_logging(level="debug", json_mode=True, stream=stream)
        logs.configure_logging(level="debug", json_mode=True, stream=stream)
        assert len(root.handlers) == before + 1
        assert isinstance(root.handlers[-1].formatter, logs.JsonFormatter)
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(level)


def test_configure_logging_is_exported():
    import httpreq

    assert httpreq.configure_logging is logs.configure_logging
