from .chat import (
    ChatConfigError,
    ChatCreditsError,
    ChatProvider,
    ChatRateLimitError,
    ChatServiceError,
    ChatUnavailableError,
    get_chat_provider,
)

__all__ = [
    "ChatConfigError",
    "ChatCreditsError",
    "ChatProvider",
    "ChatRateLimitError",
    "ChatServiceError",
    "ChatUnavailableError",
    "get_chat_provider",
]
