from fastapi import HTTPException, status

from src.domain import Profile
from src.providers import ChatConfigError, ChatProvider, get_chat_provider
from src.services.coach import CoachSession, get_session
from src.services.profile import ProfileNotFoundError, profile_service


def get_coach_provider() -> ChatProvider:
    """Chat backend for coach turns, or 503 when none is configured."""
    try:
        return get_chat_provider()
    except ChatConfigError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        ) from e


async def get_coach_session_or_404(session_id: str) -> CoachSession:
    """Load coach session by id or raise 404. Requires route path param session_id."""
    session = get_session(session_id)
    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found. Please start a new coach session.",
        )
    return session


async def get_profile_or_404(profile_id: str) -> Profile:
    """Load profile by id or raise 404. Requires route path param profile_id."""
    try:
        return profile_service.get_profile(profile_id)
    except ProfileNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )


def get_optional_chat_provider() -> ChatProvider | None:
    """Chat backend for the stateless proxy; None when not configured (the route answers 500)."""
    try:
        return get_chat_provider()
    except ChatConfigError:
        return None
