"""Tests for the OpenAI-compatible chat provider against a mocked backend."""

import json

import httpx
import pytest

from src.core import get_settings
from src.providers import (
    ChatConfigError,
    ChatCreditsError,
    ChatRateLimitError,
    ChatServiceError,
    ChatUnavailableError,
    get_chat_provider,
)
from src.providers.chat import OpenAIChatProvider, OpenAICompatibleChatProvider
from src.services.coach import collect_stream

from conftest import sse_reply


def _provider(handler, base_url="https://gateway.test"):
    return OpenAICompatibleChatProvider(
        base_url=base_url,
        api_key="secret",
        model="test-model",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_streams_reply_and_sends_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            content="".join(sse_reply("Hello", " world")).encode(),
            headers={"Content-Type": "text/event-stream"},
        )

    provider = _provider(handler)
    text = await collect_stream(provider.stream_chat([{"role": "user", "content": "hi"}], "Be nice"))

    assert text == "Hello world"
    assert seen["url"] == "https://gateway.test/v1/chat/completions"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["stream"] is True
    assert seen["body"]["messages"] == [
        {"role": "system", "content": "Be nice"},
        {"role": "user", "content": "hi"},
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, error",
    [
        (429, ChatRateLimitError),
        (402, ChatCreditsError),
        (500, ChatServiceError),
    ],
)
async def test_status_mapping(status, error):
    provider = _provider(lambda request: httpx.Response(status, text="nope"))
    with pytest.raises(error):
        await collect_stream(provider.stream_chat([{"role": "user", "content": "hi"}]))


@pytest.mark.asyncio
async def test_connection_error_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    provider = _provider(handler)
    with pytest.raises(ChatUnavailableError):
        await collect_stream(provider.stream_chat([{"role": "user", "content": "hi"}]))


def test_base_url_normalized():
    assert _provider(lambda r: None, "https://gw.test/v1/").base_url == "https://gw.test/v1"
    assert _provider(lambda r: None, "https://gw.test").base_url == "https://gw.test/v1"


def test_default_timeout_from_settings():
    provider = OpenAICompatibleChatProvider(base_url="https://gw.test", api_key=None, model="m")
    s = get_settings()
    assert provider.timeout.read == s.coach_stream_idle_timeout_seconds
    assert provider.timeout.connect == s.coach_connect_timeout_seconds


class TestGetChatProvider:
    def _use_settings(self, monkeypatch, **overrides):
        s = get_settings().model_copy(
            update={
                "chat_api_base_url": None,
                "chat_api_key": None,
                "chat_model": None,
                "openai_api_key": None,
                **overrides,
            }
        )
        monkeypatch.setattr("src.providers.chat.get_settings", lambda: s)

    def test_unconfigured_raises(self, monkeypatch):
        self._use_settings(monkeypatch)
        with pytest.raises(ChatConfigError):
            get_chat_provider()

    def test_openai_when_only_key(self, monkeypatch):
        self._use_settings(monkeypatch, openai_api_key="sk-test")
        provider = get_chat_provider()
        assert isinstance(provider, OpenAIChatProvider)
        assert provider.base_url == "https://api.openai.com/v1"
        assert provider.model == "gpt-4o-mini"

    def test_gateway_when_base_url(self, monkeypatch):
        self._use_settings(monkeypatch, chat_api_base_url="https://gw.test", openai_api_key="sk-test")
        provider = get_chat_provider()
        assert type(provider) is OpenAICompatibleChatProvider
        assert provider.base_url == "https://gw.test/v1"
        assert provider.model == "google/gemini-3-flash-preview"
