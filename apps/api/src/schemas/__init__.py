"""Pydantic request/response schemas."""

from src.schemas.profile import CreateProfileRequest, PatchProfileRequest
from src.schemas.coach import (
    CreateSessionRequest,
    SendMessageRequest,
    UpdateIssueResponse,
    ChatTurnResponse,
    CoachSessionResponse,
    PreviewResponse,
)

__all__ = [
    "CreateProfileRequest",
    "PatchProfileRequest",
    "CreateSessionRequest",
    "SendMessageRequest",
    "UpdateIssueResponse",
    "ChatTurnResponse",
    "CoachSessionResponse",
    "PreviewResponse",
]
