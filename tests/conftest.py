import json

import httpx
import pytest
from fastapi.testclient import TestClient

from kindred.api import create_app
from kindred.config import Settings


def gemini_body(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}


class StubGemini:
    """Stands in for the Gemini API and counts the calls it receives."""

    def __init__(self):
        self.requests = []
        self.replies = []

    @property
    def calls(self):
        return len(self.requests)

    def reply(self, status_code=200, json_body=None, text=None):
        self.replies.append(("reply", status_code, json_body, text))

    def fail(self, exc_type=httpx.ConnectError, message="connection refused"):
        self.replies.append(("fail", exc_type, message, None))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        kind, a, b, c = self.replies.pop(0) if self.replies else ("reply", 200, gemini_body("Hello"), None)
        if kind == "fail":
            raise a(b, request=request)
        if c is not None:
            return httpx.Response(a, text=c)
        return httpx.Response(a, json=b)

    def last_body(self):
        return json.loads(self.requests[-1].content)

    def transport(self):
        return httpx.MockTransport(self.handler)


@pytest.fixture
def upstream():
    return StubGemini()


@pytest.fixture
def settings(tmp_path):
    static = tmp_path / "public"
    static.mkdir()
    (static / "index.html").write_text("<html><body>Kindred UI</body></html>")
    return Settings(api_key="test-key", static_dir=static)


@pytest.fixture
def make_client(upstream):
    clients = []

    def _make(settings):
        client = TestClient(create_app(settings, transport=upstream.transport()))
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, settings):
    return make_client(settings)
