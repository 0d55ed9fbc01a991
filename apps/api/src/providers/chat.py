import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator

import httpx

from src.core import get_settings

logger = logging.getLogger(__name__)


class ChatServiceError(Exception):
    """Raised when the chat/LLM API is unavailable or returns invalid or unexpected output."""


class ChatRateLimitError(ChatServiceError):
    """Raised when the chat/LLM API rate limits the request."""


class ChatCreditsError(ChatServiceError):
    """Raised when the chat/LLM API reports that credits are depleted (HTTP 402)."""


class ChatUnavailableError(ChatServiceError):
    """Raised when the chat/LLM API cannot be reached (timeout or connection error)."""


class ChatConfigError(ChatServiceError):
    """Raised when no chat backend is configured."""


class ChatProvider(ABC):
    @abstractmethod
    def stream_chat(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
    ) -> AsyncIterator[str]:
        """Yield raw text chunks of the backend's SSE reply (data: {...} lines)."""


class OpenAICompatibleChatProvider(ChatProvider):
    """OpenAI-compatible endpoint (AI gateway, vLLM, etc.) with stream=true."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        model: str,
        timeout: httpx.Timeout | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        if not self.base_url.endswith("/v1"):
            self.base_url = f"{self.base_url}/v1"
        self.api_key = api_key
        self.model = model
        if timeout is None:
            s = get_settings()
            # read timeout is per chunk, so it bounds stream idle time rather than reply length
            timeout = httpx.Timeout(
                s.coach_stream_idle_timeout_seconds,
                connect=s.coach_connect_timeout_seconds,
            )
        self.timeout = timeout
        self._transport = transport

    def _build_payload(self, messages: list[dict[str, str]], system_prompt: str | None) -> dict:
        full_messages = list(messages)
        if system_prompt:
            full_messages = [{"role": "system", "content": system_prompt}, *full_messages]
        return {"model": self.model, "messages": full_messages, "stream": True}

    @staticmethod
    def _raise_for_status(status_code: int, body: str) -> None:
        if status_code == 429:
            raise ChatRateLimitError("Rate limit exceeded. Please wait a moment and try again.")
        if status_code == 402:
            raise ChatCreditsError("API credits depleted.")
        if body:
            logger.warning("Chat API error %s: %s", status_code, body[:500])
        raise ChatServiceError(f"Chat API returned {status_code}. Please try again later.")

    async def stream_chat(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
    ) -> AsyncIterator[str]:
        payload = self._build_payload(messages, system_prompt)
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        logger.info(
            "Coach chat request: model=%s messages=%d system_prompt_chars=%d",
            self.model,
            len(payload["messages"]),
            len(system_prompt or ""),
        )
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                async with client.stream(
                    "POST",
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                ) as r:
                    if r.status_code >= 400:
                        body = (await r.aread()).decode("utf-8", errors="replace")
                        self._raise_for_status(r.status_code, body)
                    async for chunk in r.aiter_text():
                        yield chunk
        except httpx.RequestError as e:
            raise ChatUnavailableError(
                "Chat service unavailable (timeout or connection error). Please try again later."
            ) from e


class OpenAIChatProvider(OpenAICompatibleChatProvider):
    """Official OpenAI API."""

    def __init__(self):
        s = get_settings()
        super().__init__(
            base_url="https://api.openai.com/v1",
            api_key=s.openai_api_key,
            model=s.chat_model or _OPENAI_DEFAULT_MODEL,
        )


# Default model for OpenAI official API when CHAT_MODEL is not set
_OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
# Default model for an OpenAI-compatible gateway when CHAT_MODEL is not set
_OPENAI_COMPATIBLE_DEFAULT_MODEL = "google/gemini-3-flash-preview"


def get_chat_provider() -> ChatProvider:
    s = get_settings()
    if s.openai_api_key and not s.chat_api_base_url:
        return OpenAIChatProvider()
    if s.chat_api_base_url:
        return OpenAICompatibleChatProvider(
            base_url=s.chat_api_base_url,
            api_key=s.chat_api_key,
            model=s.chat_model or _OPENAI_COMPATIBLE_DEFAULT_MODEL,
        )
    raise ChatConfigError(
        "Chat LLM not configured. Set OPENAI_API_KEY or CHAT_API_BASE_URL (and CHAT_MODEL)."
    )
