"""Shared model-to-response serializers."""

from typing import Optional

from src.core.constants import FORMATTING_ISSUE_MESSAGE, FORMATTING_ISSUE_TITLE
from src.domain import Profile
from src.schemas import ChatTurnResponse, CoachSessionResponse, UpdateIssueResponse
from src.services.coach import ChatTurn, CoachSession


def chat_turn_to_response(turn: ChatTurn) -> ChatTurnResponse:
    """Map ChatTurn to ChatTurnResponse (diagnostic raw/coerced payloads are left out)."""
    issue = None
    if turn.update_issue is not None:
        issue = UpdateIssueResponse(
            code=turn.update_issue.value,
            title=FORMATTING_ISSUE_TITLE,
            message=FORMATTING_ISSUE_MESSAGE,
        )
    return ChatTurnResponse(
        id=turn.id,
        role=turn.role,
        text=turn.text,
        update_state=turn.update_state.value if turn.update_state else None,
        pending_update=turn.pending_update,
        update_validity=turn.update_validity,
        update_issue=issue,
        is_error=turn.is_error,
        error_message=turn.error_message,
    )


def coach_session_to_response(
    session: CoachSession,
    preview: Optional[Profile] = None,
) -> CoachSessionResponse:
    return CoachSessionResponse(
        id=session.id,
        profile_id=session.profile_id,
        busy=session.is_busy,
        turns=[chat_turn_to_response(t) for t in session.turns],
        preview=preview,
    )
