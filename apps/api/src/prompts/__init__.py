"""
LLM prompt templates for the profile coach.

The coach system prompt defines the persona and the ```json:profile_update
block contract consumed by src.services.coach. Profile and scraped data are
appended as JSON context by build_coach_system_prompt.
"""

from .coach import (
    COACH_SYSTEM_PROMPT,
    build_coach_system_prompt,
    get_coach_welcome_message,
)

__all__ = [
    "COACH_SYSTEM_PROMPT",
    "build_coach_system_prompt",
    "get_coach_welcome_message",
]
