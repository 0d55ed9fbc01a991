from typing import Any, Optional

from src.domain import CamelModel, DataInsight, FunFact, Photo, PromptAnswer, SocialUsernames


class CreateProfileRequest(CamelModel):
    display_name: Optional[str] = None
    age: Optional[int] = None
    location: Optional[str] = None
    gender: Optional[str] = None
    orientation: Optional[str] = None
    photos: Optional[list[Photo]] = None
    looking_for: Optional[str] = None
    target_audience: Optional[str] = None
    bio: Optional[str] = None
    prompt_answers: Optional[list[PromptAnswer]] = None
    fun_facts: Optional[list[FunFact]] = None
    data_insights: Optional[list[DataInsight]] = None
    yellowcake_data: Optional[dict[str, Any]] = None
    social_usernames: Optional[SocialUsernames] = None


class PatchProfileRequest(CreateProfileRequest):
    """Partial update; only fields present in the body are changed."""
