"""
Shared fixtures: fake upstream/mail backends served through httpx.MockTransport.
"""
import json
import os
import sys
from pathlib import Path
from typing import List, Optional

import httpx
import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

os.environ.setdefault("OPENAI_API_KEY", "test-key")

from config.settings import Settings  # noqa: E402


def sse(content: str) -> bytes:
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(payload)}\n\n".encode("utf-8")


class ChunkStream(httpx.AsyncByteStream):
    """Response body delivered as the given pieces, optionally failing after them."""

    def __init__(self, pieces: List[bytes], error: Optional[Exception] = None) -> None:
        self.pieces = pieces
        self.error = error

    async def __aiter__(self):
        for piece in self.pieces:
            yield piece
        if self.error is not None:
            raise self.error


class FakeBackend:
    """Plays both the completion API and the mail API."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.chat_status = 200
        self.chat_pieces = [sse("Hi from ChatGPT!"), sse(" Welcome to Shimmer Bay.")]
        self.completion_status = 200
        self.completion = "Collab idea for Shimmer Bay"
        self.mail_status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/chat/completions"):
            body = json.loads(request.content)
            if body.get("stream"):
                if self.chat_status != 200:
                    return httpx.Response(self.chat_status, text="upstream says no")
                return httpx.Response(200, stream=ChunkStream(self.chat_pieces))
            if self.completion_status != 200:
                return httpx.Response(self.completion_status, text="rate limited")
            return httpx.Response(200, json={"choices": [{"message": {"content": self.completion}}]})
        return httpx.Response(self.mail_status, json={"id": "email_123"})

    def completion_bodies(self) -> List[dict]:
        return [json.loads(r.content) for r in self.requests if r.url.path.endswith("/chat/completions")]

    def mail_bodies(self) -> List[dict]:
        return [json.loads(r.content) for r in self.requests if r.url.path.endswith("/emails")]


@pytest.fixture
def settings(monkeypatch) -> Settings:
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("MAIL_API_KEY", "mail-key")
    monkeypatch.setenv("CONTACT_RECIPIENT", "hello@luminaryventures.com")
    return Settings()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def http(backend) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))
