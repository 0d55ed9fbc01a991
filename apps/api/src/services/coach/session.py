"""
In-memory session store for coach conversations.

Maps session_id -> CoachSession (turn list + profile id + turn lock).
For production with multiple instances, use Redis.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from src.domain import ProfileUpdate
from .errors import NoPendingUpdateError, SessionNotFoundError, UpdateIssue

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    """Lifecycle of one assistant turn's suggested update."""
    STREAMING = "streaming"
    ASSEMBLED = "assembled"
    NO_UPDATE = "no_update"
    VALID_PENDING_DECISION = "valid_pending_decision"
    INVALID = "invalid"
    APPLIED = "applied"
    DECLINED = "declined"
    # A newer assistant turn arrived while this one's update was still pending
    SUPERSEDED = "superseded"


@dataclass
class ChatTurn:
    """One user message or assistant reply. Only assistant turns carry update state."""

    id: str
    role: Literal["user", "assistant"]
    text: str = ""
    update_state: Optional[TurnState] = None
    pending_update: Optional[ProfileUpdate] = None
    # None: no update suggested; False: suggested but unusable
    update_validity: Optional[bool] = None
    update_issue: Optional[UpdateIssue] = None
    is_error: bool = False
    # User-facing transport error (rate limit, credits, unavailable)
    error_message: Optional[str] = None
    # Diagnostics only; never sent to clients
    raw_update: Any = None
    coerced_update: Any = None

    def finish_stream(self, text: str) -> None:
        self.text = text
        self.update_state = TurnState.ASSEMBLED

    def mark_no_update(self, display_text: str) -> None:
        self.text = display_text
        self.update_state = TurnState.NO_UPDATE

    def attach_update(self, display_text: str, update: ProfileUpdate, raw: Any, coerced: Any) -> None:
        self.text = display_text
        self.pending_update = update
        self.update_validity = True
        self.update_issue = None
        self.raw_update = raw
        self.coerced_update = coerced
        self.update_state = TurnState.VALID_PENDING_DECISION

    def mark_invalid(self, display_text: str, issue: UpdateIssue, raw: Any = None, coerced: Any = None) -> None:
        self.text = display_text
        self.pending_update = None
        self.update_validity = False
        self.update_issue = issue
        self.raw_update = raw
        self.coerced_update = coerced
        self.update_state = TurnState.INVALID

    def mark_error(self, text: str, message: Optional[str] = None) -> None:
        self.text = text
        self.is_error = True
        self.error_message = message
        self.pending_update = None
        self.update_state = TurnState.NO_UPDATE

    def resolve(self, state: TurnState) -> None:
        """Close the pending decision (applied, declined or superseded)."""
        if self.pending_update is None:
            raise NoPendingUpdateError(f"Turn {self.id} has no pending update.")
        self.pending_update = None
        self.update_state = state


@dataclass
class CoachSession:
    """State for one coach conversation about one profile."""

    id: str
    profile_id: str
    turns: list[ChatTurn] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    # Serializes turns: at most one streaming reply per session
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def is_busy(self) -> bool:
        return self.lock.locked()

    def add_user_turn(self, text: str) -> ChatTurn:
        turn = ChatTurn(id=f"user-{uuid.uuid4().hex[:12]}", role="user", text=text)
        self.turns.append(turn)
        return turn

    def add_assistant_turn(self, text: str = "", state: TurnState = TurnState.STREAMING) -> ChatTurn:
        """Append an assistant turn; any earlier pending update is discarded."""
        for turn in self.turns:
            if turn.pending_update is not None:
                turn.resolve(TurnState.SUPERSEDED)
                logger.info("Coach update superseded: session_id=%s turn_id=%s", self.id, turn.id)
        turn = ChatTurn(
            id=f"assistant-{uuid.uuid4().hex[:12]}",
            role="assistant",
            text=text,
            update_state=state,
        )
        self.turns.append(turn)
        return turn

    def get_turn(self, turn_id: str) -> Optional[ChatTurn]:
        for turn in self.turns:
            if turn.id == turn_id:
                return turn
        return None

    def pending_turn(self) -> Optional[ChatTurn]:
        """The turn owning a pending decision, if any (at most one exists)."""
        for turn in reversed(self.turns):
            if turn.pending_update is not None:
                return turn
        return None

    def history(self) -> list[dict[str, str]]:
        """Conversation in chat-completions format, skipping empty placeholders and error replies."""
        return [
            {"role": t.role, "content": t.text}
            for t in self.turns
            if t.text and not t.is_error and t.update_state != TurnState.STREAMING
        ]


# session_id -> CoachSession
_sessions: dict[str, CoachSession] = {}


def create_session(profile_id: str, welcome_message: Optional[str] = None) -> CoachSession:
    """Create a new session, optionally opened by an assistant welcome turn."""
    session = CoachSession(id=uuid.uuid4().hex, profile_id=profile_id)
    if welcome_message:
        session.add_assistant_turn(welcome_message, state=TurnState.NO_UPDATE)
    _sessions[session.id] = session
    logger.info("Coach session created: session_id=%s profile_id=%s", session.id, profile_id)
    return session


def get_session(session_id: str) -> Optional[CoachSession]:
    """Get a session, or None."""
    return _sessions.get(session_id)


def require_session(session_id: str) -> CoachSession:
    session = _sessions.get(session_id)
    if session is None:
        raise SessionNotFoundError(f"Coach session {session_id} not found.")
    return session


def delete_session(session_id: str) -> None:
    """Remove a session."""
    if session_id in _sessions:
        del _sessions[session_id]
        logger.info("Coach session deleted: session_id=%s", session_id)


def clear_sessions() -> None:
    _sessions.clear()
