"""
Profile coach chat.

- POST /coach/sessions: start a coach session for a profile (opens with a welcome turn)
- POST /coach/sessions/{session_id}/messages: send a message; the reply streams back as
  OpenAI-style SSE chunks, then an `event: turn` frame with the finished turn, then [DONE]
- GET /coach/sessions/{session_id}/preview: profile as it would look after the pending update
- POST /coach/sessions/{session_id}/turns/{turn_id}/apply | decline: close the pending decision
- POST /coach/chat: stateless proxy of the chat backend stream (client builds the system prompt)
"""

import json
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from src.core import get_settings, limiter
from src.core.constants import SSE_DONE_SENTINEL
from src.dependencies import (
    get_coach_provider,
    get_coach_session_or_404,
    get_optional_chat_provider,
)
from src.domain import Profile
from src.prompts import get_coach_welcome_message
from src.providers import (
    ChatCreditsError,
    ChatProvider,
    ChatRateLimitError,
    ChatServiceError,
    ChatUnavailableError,
)
from src.schemas import (
    ChatTurnResponse,
    CoachSessionResponse,
    CreateSessionRequest,
    PreviewResponse,
    SendMessageRequest,
)
from src.serializers import chat_turn_to_response, coach_session_to_response
from src.services.coach import (
    CoachSession,
    NoPendingUpdateError,
    SessionBusyError,
    TurnEvent,
    TurnNotFoundError,
    apply_pending_update,
    create_session,
    decline_pending_update,
    delete_session,
    run_coach_turn,
    session_preview,
)
from src.services.profile import ProfileNotFoundError, profile_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coach", tags=["coach"])

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def _sse_chunk(turn_id: str, content: str) -> str:
    """Format one SSE chunk (OpenAI streaming)."""
    obj = {
        "id": turn_id,
        "object": "chat.completion.chunk",
        "choices": [{"index": 0, "delta": {"content": content}, "finish_reason": None}],
    }
    return f"data: {json.dumps(obj)}\n\n"


def _sse_event(event: str, payload: dict[str, Any]) -> str:
    """Named SSE event (turn, error) carrying a JSON payload."""
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


def _turn_payload(event: TurnEvent) -> dict[str, Any]:
    return chat_turn_to_response(event.turn).model_dump(by_alias=True, mode="json")


async def _stream_turn(events: AsyncIterator[TurnEvent]):
    """Relay coach turn events as SSE (async generator). Deltas carry only the new text."""
    sent = 0
    try:
        async with aclosing(events) as turn_events:
            async for event in turn_events:
                if event.kind == "delta":
                    piece = event.text[sent:]
                    sent = len(event.text)
                    if piece:
                        yield _sse_chunk(event.turn.id, piece)
                elif event.kind == "error":
                    yield _sse_event("error", {"message": event.message, "turn": _turn_payload(event)})
                else:
                    yield _sse_event("turn", _turn_payload(event))
    except SessionBusyError as e:
        yield _sse_event("error", {"message": str(e)})
    yield f"data: {SSE_DONE_SENTINEL}\n\n"


def _profile_or_404(profile_id: str) -> Profile:
    try:
        return profile_service.get_profile(profile_id)
    except ProfileNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")


@router.post("/sessions", response_model=CoachSessionResponse, status_code=status.HTTP_201_CREATED)
async def start_session(body: CreateSessionRequest):
    profile = _profile_or_404(body.profile_id)
    session = create_session(
        profile.id,
        welcome_message=get_coach_welcome_message(bool(profile.yellowcake_data)),
    )
    return coach_session_to_response(session)


@router.get("/sessions/{session_id}", response_model=CoachSessionResponse)
async def get_coach_session(session: CoachSession = Depends(get_coach_session_or_404)):
    try:
        _, preview = session_preview(session)
    except ProfileNotFoundError:
        preview = None
    return coach_session_to_response(session, preview)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def end_session(session: CoachSession = Depends(get_coach_session_or_404)):
    delete_session(session.id)


@router.post("/sessions/{session_id}/messages")
@limiter.limit(lambda: get_settings().coach_chat_rate_limit)
async def send_message(
    request: Request,
    body: SendMessageRequest,
    session: CoachSession = Depends(get_coach_session_or_404),
    provider: ChatProvider = Depends(get_coach_provider),
):
    """
    Run one coach turn. Streams by default; with stream=false the finished turn
    is returned as JSON (transport errors then show up as isError/errorMessage).
    """
    if session.is_busy:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A reply is still streaming for this session. Please wait for it to finish.",
        )
    _profile_or_404(session.profile_id)

    events = run_coach_turn(
        session,
        body.content,
        provider,
        max_reply_chars=get_settings().coach_max_reply_chars,
    )

    if body.stream:
        return StreamingResponse(
            _stream_turn(events),
            media_type="text/event-stream",
            headers=_SSE_HEADERS,
        )

    last: TurnEvent | None = None
    try:
        async with aclosing(events) as turn_events:
            async for event in turn_events:
                last = event
    except SessionBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return chat_turn_to_response(last.turn)


@router.get("/sessions/{session_id}/preview", response_model=PreviewResponse)
async def get_preview(session: CoachSession = Depends(get_coach_session_or_404)):
    """Profile as it would look if the pending update were applied; nulls when nothing is pending."""
    try:
        turn, preview = session_preview(session)
    except ProfileNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return PreviewResponse(turn_id=turn.id if turn else None, preview=preview)


@router.post("/sessions/{session_id}/turns/{turn_id}/apply", response_model=Profile)
async def apply_update(turn_id: str, session: CoachSession = Depends(get_coach_session_or_404)):
    try:
        return apply_pending_update(session, turn_id)
    except TurnNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except NoPendingUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ProfileNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")


@router.post("/sessions/{session_id}/turns/{turn_id}/decline", response_model=ChatTurnResponse)
async def decline_update(turn_id: str, session: CoachSession = Depends(get_coach_session_or_404)):
    try:
        turn = decline_pending_update(session, turn_id)
    except TurnNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except NoPendingUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return chat_turn_to_response(turn)


def _valid_messages(messages: list) -> list[dict[str, str]]:
    return [
        {"role": m["role"], "content": m["content"]}
        for m in messages
        if isinstance(m, dict)
        and m.get("role") in ("user", "assistant")
        and isinstance(m.get("content"), str)
    ]


async def _passthrough(first: str | None, chunks: AsyncIterator[str]):
    """Relay backend SSE text unchanged (async generator)."""
    try:
        if first:
            yield first
        async for chunk in chunks:
            yield chunk
    except ChatServiceError as e:
        # Headers are already sent; the client sees a truncated stream
        logger.warning("coach/chat stream aborted: %s", e)
    finally:
        await chunks.aclose()


@router.post("/chat")
async def coach_chat(
    request: Request,
    provider: ChatProvider | None = Depends(get_optional_chat_provider),
):
    """
    Stateless coach chat: body {messages, systemPrompt, currentProfile?, yellowcakeData?}.
    The system prompt is built by the client; the backend stream is relayed as-is.
    """
    try:
        body = await request.json()
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid request body. Expected JSON.")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid request body. Expected JSON.")

    messages = body.get("messages")
    system_prompt = body.get("systemPrompt")
    logger.info("coach/chat: system_prompt_chars=%d", len(system_prompt) if isinstance(system_prompt, str) else 0)

    if not isinstance(messages, list) or not messages:
        raise HTTPException(status_code=400, detail="messages must be a non-empty array")
    if not system_prompt or not isinstance(system_prompt, str):
        raise HTTPException(status_code=400, detail="systemPrompt is required and must be a string")
    if provider is None:
        logger.error("coach/chat: chat backend is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")

    valid = _valid_messages(messages)
    if not valid:
        raise HTTPException(status_code=400, detail="No valid messages found")

    chunks = provider.stream_chat(valid, system_prompt)
    # Pull the first chunk here so backend status errors become HTTP statuses
    try:
        first = await chunks.__anext__()
    except StopAsyncIteration:
        first = None
    except ChatRateLimitError:
        raise HTTPException(status_code=429, detail="Rate limit exceeded. Please try again in a moment.")
    except ChatCreditsError:
        raise HTTPException(status_code=402, detail="API credits depleted.")
    except ChatUnavailableError:
        raise HTTPException(status_code=503, detail="Failed to connect to AI service. Please try again.")
    except ChatServiceError as e:
        logger.warning("coach/chat backend error: %s", e)
        raise HTTPException(status_code=500, detail=str(e))

    return StreamingResponse(
        _passthrough(first, chunks),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )
