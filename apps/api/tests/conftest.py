"""Shared fixtures: clean in-memory stores, a scripted chat backend, and an API client."""

import json

import pytest
from fastapi.testclient import TestClient

from src.dependencies import get_coach_provider, get_optional_chat_provider
from src.main import app
from src.providers import ChatProvider
from src.services.coach import clear_sessions
from src.services.profile import profile_service


def sse_frame(content: str) -> str:
    """One OpenAI-style streaming frame carrying a content delta."""
    obj = {"choices": [{"index": 0, "delta": {"content": content}}]}
    return f"data: {json.dumps(obj)}\n\n"


def sse_reply(*pieces: str) -> list[str]:
    """Whole backend reply: one frame per piece, then [DONE]."""
    return [sse_frame(p) for p in pieces] + ["data: [DONE]\n\n"]


def update_block(update: dict) -> str:
    return f"```json:profile_update\n{json.dumps(update)}\n```"


class FakeChatProvider(ChatProvider):
    """Replays scripted chunks; raises `error` after `fail_after` chunks when set."""

    def __init__(self, chunks=None, error=None, fail_after=0):
        self.chunks = list(chunks or [])
        self.error = error
        self.fail_after = fail_after
        self.calls = []

    async def stream_chat(self, messages, system_prompt=None):
        self.calls.append({"messages": messages, "system_prompt": system_prompt})
        for i, chunk in enumerate(self.chunks):
            if self.error is not None and i == self.fail_after:
                raise self.error
            yield chunk
        if self.error is not None and self.fail_after >= len(self.chunks):
            raise self.error


@pytest.fixture(autouse=True)
def clean_stores():
    clear_sessions()
    profile_service.clear()
    yield
    clear_sessions()
    profile_service.clear()


@pytest.fixture
def fake_provider():
    return FakeChatProvider()


@pytest.fixture
def client(fake_provider):
    app.dependency_overrides[get_coach_provider] = lambda: fake_provider
    app.dependency_overrides[get_optional_chat_provider] = lambda: fake_provider
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def profile():
    return profile_service.create_profile()
