"""
Profile coach.

Turns a streamed assistant reply into a reviewable profile patch: assemble the
stream, extract the json:profile_update block, coerce, validate, preview, then
apply or decline.
"""

from .adapter import (
    TurnEvent,
    apply_pending_update,
    decline_pending_update,
    finalize_turn,
    run_coach_turn,
    session_preview,
)
from .coercion import CoercionResult, coerce_update
from .errors import (
    InvalidUpdateError,
    NoPendingUpdateError,
    SessionBusyError,
    SessionNotFoundError,
    StreamLimitError,
    TurnNotFoundError,
    UpdateIssue,
)
from .preview import materialize_preview
from .session import (
    ChatTurn,
    CoachSession,
    TurnState,
    clear_sessions,
    create_session,
    delete_session,
    get_session,
    require_session,
)
from .stream import StreamAssembler, assemble_stream, collect_stream
from .update_block import ExtractedUpdate, extract_update_block, strip_update_blocks
from .validation import find_update_issue, parse_update, validate_update

__all__ = [
    "TurnEvent",
    "apply_pending_update",
    "decline_pending_update",
    "finalize_turn",
    "run_coach_turn",
    "session_preview",
    "CoercionResult",
    "coerce_update",
    "InvalidUpdateError",
    "NoPendingUpdateError",
    "SessionBusyError",
    "SessionNotFoundError",
    "StreamLimitError",
    "TurnNotFoundError",
    "UpdateIssue",
    "materialize_preview",
    "ChatTurn",
    "CoachSession",
    "TurnState",
    "clear_sessions",
    "create_session",
    "delete_session",
    "get_session",
    "require_session",
    "StreamAssembler",
    "assemble_stream",
    "collect_stream",
    "ExtractedUpdate",
    "extract_update_block",
    "strip_update_blocks",
    "find_update_issue",
    "parse_update",
    "validate_update",
]
