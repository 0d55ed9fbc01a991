"""
Domain types for Bio-Match profiles and coach profile updates.
Single source of truth for prompts, validation, and API.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# -----------------------------------------------------------------------------
# 1. Enums
# -----------------------------------------------------------------------------

PromptSource = Literal["user", "llm"]

FunFactSource = Literal["yellowcake", "user", "llm"]

InsightType = Literal["stat", "badge", "chart"]

InsightSource = Literal["yellowcake", "llm"]

VisualizationHint = Literal["pill", "bar", "simple"]

ProfileField = Literal["bio", "promptAnswers", "funFacts"]

UpdateAction = Literal["replace", "add"]

PROMPT_SOURCES = frozenset(get_args(PromptSource))
FUN_FACT_SOURCES = frozenset(get_args(FunFactSource))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base for models exchanged with the web client (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------------------------------------------------------
# 2. Profile
# -----------------------------------------------------------------------------


class Photo(CamelModel):
    id: str
    url: str
    is_primary: bool = False
    sort_order: int = 0


class PromptAnswer(CamelModel):
    id: str
    prompt_id: str
    prompt_text: str
    answer_text: str
    source: PromptSource = "user"
    sort_order: int = 0


class FunFact(CamelModel):
    id: str
    label: str
    value: str
    source: FunFactSource = "user"
    icon: Optional[str] = None
    sort_order: int = 0


class DataInsight(CamelModel):
    id: str
    type: InsightType
    title: str
    description: str = ""
    metric_key: str
    metric_value: Union[int, float, str]
    visualization_hint: Optional[VisualizationHint] = None
    source: InsightSource = "yellowcake"
    sort_order: int = 0


class SocialUsernames(CamelModel):
    github: Optional[str] = None
    letterboxd: Optional[str] = None
    spotify: Optional[str] = None


class Profile(CamelModel):
    """Hinge-style dating profile. prompt_answers and fun_facts keep sort_order == position."""

    id: str
    display_name: str = ""
    age: Optional[int] = None
    location: str = ""
    gender: Optional[str] = None
    orientation: Optional[str] = None
    photos: list[Photo] = Field(default_factory=list)
    looking_for: str = ""
    target_audience: str = ""
    bio: str = ""
    prompt_answers: list[PromptAnswer] = Field(default_factory=list)
    fun_facts: list[FunFact] = Field(default_factory=list)
    data_insights: list[DataInsight] = Field(default_factory=list)
    # Scraped "digital footprint" (repos, music, films...); shape owned by the scraper
    yellowcake_data: Optional[dict[str, Any]] = None
    social_usernames: SocialUsernames = Field(default_factory=SocialUsernames)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# -----------------------------------------------------------------------------
# 3. Profile updates (typed, built only after coercion + validation)
# -----------------------------------------------------------------------------


class PromptAnswerDraft(CamelModel):
    """Loose prompt item as sent by the coach; missing ids are synthesized on preview."""

    id: Optional[str] = None
    prompt_id: Optional[str] = None
    prompt_text: Optional[str] = None
    answer_text: Optional[str] = None


class FunFactDraft(CamelModel):
    id: Optional[str] = None
    label: Optional[str] = None
    value: Optional[str] = None
    source: Optional[str] = None
    icon: Optional[str] = None


class BioText(CamelModel):
    bio: str


class BioReplace(CamelModel):
    field: Literal["bio"] = "bio"
    action: Literal["replace"] = "replace"
    data: Union[str, BioText]

    @property
    def text(self) -> str:
        return self.data if isinstance(self.data, str) else self.data.bio


class PromptAnswersReplace(CamelModel):
    field: Literal["promptAnswers"] = "promptAnswers"
    action: Literal["replace"] = "replace"
    data: list[PromptAnswerDraft]


class PromptAnswersAdd(CamelModel):
    field: Literal["promptAnswers"] = "promptAnswers"
    action: Literal["add"] = "add"
    data: PromptAnswerDraft


class FunFactsReplace(CamelModel):
    field: Literal["funFacts"] = "funFacts"
    action: Literal["replace"] = "replace"
    data: list[FunFactDraft]


class FunFactsAdd(CamelModel):
    field: Literal["funFacts"] = "funFacts"
    action: Literal["add"] = "add"
    data: FunFactDraft


ProfileUpdate = Union[
    BioReplace,
    PromptAnswersReplace,
    PromptAnswersAdd,
    FunFactsReplace,
    FunFactsAdd,
]

# (field, action) -> typed update model
UPDATE_MODELS: dict[tuple[str, str], type[BaseModel]] = {
    ("bio", "replace"): BioReplace,
    ("promptAnswers", "replace"): PromptAnswersReplace,
    ("promptAnswers", "add"): PromptAnswersAdd,
    ("funFacts", "replace"): FunFactsReplace,
    ("funFacts", "add"): FunFactsAdd,
}
