"""Shared fixtures: a requests.Session that replays a script instead of the network."""

import io
from types import SimpleNamespace

import pytest
import requests


def build_response(status_code=200, body=b"", headers=None):
    resp = requests.Response()
    resp.status_code = status_code
    resp.raw = io.BytesIO(body)
    resp.headers.update(headers or {})
    return resp


class ScriptedSession(requests.Session):
    """Each send() pops the next step: an exception is raised, a response returned."""

    def __init__(self, script):
        super().__init__()
        self.script = list(script)
        self.calls = []

    def send(self, request, **kwargs):
        self.calls.append(SimpleNamespace(
            method=request.method,
            url=request.url,
            headers=dict(request.headers),
            body=request.body,
            kwargs=kwargs,
        ))
        step = self.script.pop(0)
        if isinstance(step, BaseException):
            raise step
        return step


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def scripted():
    """scripted(step, ...) → ScriptedSession; pass ``session_factory=lambda: session``."""
    return lambda *steps: ScriptedSession(steps)
