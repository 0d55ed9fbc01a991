"""
Adapter: run one coach turn end to end and resolve its suggested update.

stream (provider) -> StreamAssembler -> extract_update_block -> coerce_update
-> parse_update (validation) -> pending decision on the assistant turn.
apply/decline close the decision; apply commits the materialized preview.
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, Literal, Optional

from src.core.constants import COACH_ERROR_REPLY
from src.domain import Profile
from src.prompts import build_coach_system_prompt
from src.providers import ChatProvider, ChatServiceError
from src.services.profile import ProfileService, profile_service
from .coercion import coerce_update
from .errors import (
    InvalidUpdateError,
    NoPendingUpdateError,
    SessionBusyError,
    StreamLimitError,
    TurnNotFoundError,
    UpdateIssue,
)
from .preview import materialize_preview
from .session import ChatTurn, CoachSession, TurnState
from .stream import StreamAssembler, assemble_stream
from .update_block import extract_update_block
from .validation import parse_update

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TurnEvent:
    """Progress of one assistant turn: growing text, final turn, or transport error."""

    kind: Literal["delta", "turn", "error"]
    turn: ChatTurn
    text: str = ""
    message: Optional[str] = None


def finalize_turn(turn: ChatTurn, reply_text: str) -> ChatTurn:
    """Parse the assembled reply and leave the turn in no_update, invalid or valid_pending_decision."""
    turn.finish_stream(reply_text)
    extracted = extract_update_block(reply_text)
    if not extracted.found:
        turn.mark_no_update(extracted.display_text)
        return turn
    if not extracted.valid:
        turn.mark_invalid(extracted.display_text, UpdateIssue.MALFORMED_JSON)
        return turn

    coercion = coerce_update(extracted.raw_update)
    try:
        update = parse_update(coercion.update)
    except InvalidUpdateError as e:
        turn.mark_invalid(extracted.display_text, e.issue, raw=coercion.original, coerced=coercion.update)
        return turn

    turn.attach_update(extracted.display_text, update, raw=coercion.original, coerced=coercion.update)
    logger.info("Coach update pending decision: turn_id=%s field=%s action=%s", turn.id, update.field, update.action)
    return turn


async def run_coach_turn(
    session: CoachSession,
    user_text: str,
    provider: ChatProvider,
    profiles: ProfileService = profile_service,
    max_reply_chars: Optional[int] = None,
) -> AsyncIterator[TurnEvent]:
    """
    Process one turn: append the user message, stream the assistant reply, parse its update.

    Yields "delta" events with the growing reply, then one "turn" event, or an
    "error" event when the transport fails (the turn then shows an error reply
    and carries no update).
    """
    if session.is_busy:
        raise SessionBusyError(f"Session {session.id} is still streaming a reply.")

    async with session.lock:
        profile = profiles.get_profile(session.profile_id)
        messages = [*session.history(), {"role": "user", "content": user_text}]
        session.add_user_turn(user_text)
        turn = session.add_assistant_turn()
        system_prompt = build_coach_system_prompt(profile, profile.yellowcake_data)
        assembler = StreamAssembler(max_chars=max_reply_chars)

        try:
            async with aclosing(provider.stream_chat(messages, system_prompt)) as chunks:
                async for text in assemble_stream(chunks, assembler):
                    turn.text = text
                    yield TurnEvent(kind="delta", turn=turn, text=text)
        except (ChatServiceError, StreamLimitError) as e:
            logger.warning("Coach turn aborted: session_id=%s turn_id=%s error=%s", session.id, turn.id, e)
            turn.mark_error(COACH_ERROR_REPLY, str(e))
            yield TurnEvent(kind="error", turn=turn, message=str(e))
            return
        finally:
            # Consumer went away mid-stream: don't leave a half-built turn behind
            if turn.update_state == TurnState.STREAMING and not turn.is_error:
                turn.mark_error(COACH_ERROR_REPLY)

        finalize_turn(turn, assembler.text)
        yield TurnEvent(kind="turn", turn=turn)


def _pending_turn_or_raise(session: CoachSession, turn_id: str) -> ChatTurn:
    turn = session.get_turn(turn_id)
    if turn is None:
        raise TurnNotFoundError(f"Turn {turn_id} not found in session {session.id}.")
    if turn.pending_update is None:
        raise NoPendingUpdateError(f"Turn {turn_id} has no pending update.")
    return turn


def session_preview(
    session: CoachSession,
    profiles: ProfileService = profile_service,
) -> tuple[Optional[ChatTurn], Optional[Profile]]:
    """(turn owning the pending update, preview profile); (None, None) when nothing is pending."""
    turn = session.pending_turn()
    if turn is None:
        return None, None
    profile = profiles.get_profile(session.profile_id)
    return turn, materialize_preview(profile, turn.pending_update)


def apply_pending_update(
    session: CoachSession,
    turn_id: str,
    profiles: ProfileService = profile_service,
) -> Profile:
    """Commit the turn's preview to the profile store and close the decision."""
    turn = _pending_turn_or_raise(session, turn_id)
    profile = profiles.get_profile(session.profile_id)
    preview = materialize_preview(profile, turn.pending_update)
    committed = profiles.apply_update(preview)
    turn.resolve(TurnState.APPLIED)
    logger.info("Coach update applied: session_id=%s turn_id=%s", session.id, turn.id)
    return committed


def decline_pending_update(session: CoachSession, turn_id: str) -> ChatTurn:
    """Drop the turn's pending update without touching the profile."""
    turn = _pending_turn_or_raise(session, turn_id)
    turn.resolve(TurnState.DECLINED)
    logger.info("Coach update declined: session_id=%s turn_id=%s", session.id, turn.id)
    return turn
