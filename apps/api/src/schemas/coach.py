from typing import Literal, Optional

from pydantic import Field

from src.domain import CamelModel, Profile, ProfileUpdate


class CreateSessionRequest(CamelModel):
    profile_id: str


class SendMessageRequest(CamelModel):
    content: str = Field(min_length=1)
    # False: wait for the whole reply and return the finished turn as JSON
    stream: bool = True


class UpdateIssueResponse(CamelModel):
    code: str
    title: str
    message: str


class ChatTurnResponse(CamelModel):
    id: str
    role: Literal["user", "assistant"]
    text: str
    update_state: Optional[str] = None
    pending_update: Optional[ProfileUpdate] = None
    update_validity: Optional[bool] = None
    update_issue: Optional[UpdateIssueResponse] = None
    is_error: bool = False
    error_message: Optional[str] = None


class CoachSessionResponse(CamelModel):
    id: str
    profile_id: str
    busy: bool = False
    turns: list[ChatTurnResponse]
    preview: Optional[Profile] = None


class PreviewResponse(CamelModel):
    turn_id: Optional[str] = None
    preview: Optional[Profile] = None
