"""Core configuration, rate limiting, and shared constants."""

from src.core.config import Settings, get_settings
from src.core.constants import (
    COACH_ERROR_REPLY,
    FORMATTING_ISSUE_MESSAGE,
    FORMATTING_ISSUE_TITLE,
    PROFILE_UPDATE_FENCE_TAG,
    SSE_DATA_PREFIX,
    SSE_DONE_SENTINEL,
)
from src.core.limiter import limiter

__all__ = [
    "Settings",
    "get_settings",
    "COACH_ERROR_REPLY",
    "FORMATTING_ISSUE_MESSAGE",
    "FORMATTING_ISSUE_TITLE",
    "PROFILE_UPDATE_FENCE_TAG",
    "SSE_DATA_PREFIX",
    "SSE_DONE_SENTINEL",
    "limiter",
]
