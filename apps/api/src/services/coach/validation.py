"""
Schema validation for coach profile updates, and construction of the typed update.

validate_update is a pure predicate over the (possibly coerced) raw payload.
parse_update turns a payload that passed into one of the five ProfileUpdate
variants; nothing untyped travels past this module.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from src.domain import (
    UPDATE_MODELS,
    BioReplace,
    BioText,
    FunFactDraft,
    FunFactsAdd,
    FunFactsReplace,
    ProfileUpdate,
    PromptAnswerDraft,
    PromptAnswersAdd,
    PromptAnswersReplace,
)
from .errors import InvalidUpdateError, UpdateIssue

logger = logging.getLogger(__name__)


def _has_str(data: Any, *keys: str) -> bool:
    return isinstance(data, dict) and all(isinstance(data.get(k), str) for k in keys)


def _get_str(d: dict, key: str) -> Optional[str]:
    value = d.get(key)
    return value if isinstance(value, str) else None


def _shape_ok(field: str, action: str, data: Any) -> bool:
    if field == "promptAnswers" and action == "replace":
        return isinstance(data, list)
    if field == "promptAnswers" and action == "add":
        return _has_str(data, "promptText", "answerText")
    if field == "bio" and action == "replace":
        return isinstance(data, str) or _has_str(data, "bio")
    if field == "funFacts" and action == "replace":
        return isinstance(data, list) and all(_has_str(item, "label", "value") for item in data)
    if field == "funFacts" and action == "add":
        return _has_str(data, "label", "value")
    return False


def find_update_issue(update: Any) -> Optional[UpdateIssue]:
    """None when the payload is valid, else the reason it is not."""
    if not isinstance(update, dict):
        return UpdateIssue.INVALID_SHAPE
    field = update.get("field")
    action = update.get("action")
    if not field or not action:
        return UpdateIssue.INVALID_SHAPE
    if not isinstance(field, str) or not isinstance(action, str):
        return UpdateIssue.UNKNOWN_TARGET
    if (field, action) not in UPDATE_MODELS:
        return UpdateIssue.UNKNOWN_TARGET
    if not _shape_ok(field, action, update.get("data")):
        return UpdateIssue.INVALID_SHAPE
    return None


def validate_update(update: Any) -> bool:
    """True only when the payload matches a permitted shape for its (field, action)."""
    return find_update_issue(update) is None


def _data_kind(data: Any) -> str:
    if data is None:
        return "undefined"
    if isinstance(data, list):
        return "array"
    if isinstance(data, dict):
        return "object"
    return type(data).__name__


def _prompt_draft(item: dict) -> PromptAnswerDraft:
    return PromptAnswerDraft(
        id=_get_str(item, "id"),
        prompt_id=_get_str(item, "promptId"),
        prompt_text=_get_str(item, "promptText"),
        answer_text=_get_str(item, "answerText"),
    )


def _fact_draft(item: dict) -> FunFactDraft:
    return FunFactDraft(
        id=_get_str(item, "id"),
        label=_get_str(item, "label"),
        value=_get_str(item, "value"),
        source=_get_str(item, "source"),
        icon=_get_str(item, "icon"),
    )


def parse_update(update: Any) -> ProfileUpdate:
    """Build the typed update; raises InvalidUpdateError when validation fails."""
    issue = find_update_issue(update)
    if issue is not None:
        field = update.get("field") if isinstance(update, dict) else None
        action = update.get("action") if isinstance(update, dict) else None
        data = update.get("data") if isinstance(update, dict) else None
        logger.warning(
            "Validation failed (%s): field=%s action=%s data=%s",
            issue.value,
            field,
            action,
            _data_kind(data),
        )
        raise InvalidUpdateError(issue, f"Update for {field}/{action} does not match an allowed shape.")

    field = update["field"]
    action = update["action"]
    data = update.get("data")

    if field == "bio":
        typed: ProfileUpdate = BioReplace(
            data=data if isinstance(data, str) else BioText(bio=data["bio"])
        )
    elif field == "promptAnswers" and action == "replace":
        # Any list validates; only object elements become prompt items
        typed = PromptAnswersReplace(data=[_prompt_draft(p) for p in data if isinstance(p, dict)])
    elif field == "promptAnswers":
        typed = PromptAnswersAdd(data=_prompt_draft(data))
    elif action == "replace":
        typed = FunFactsReplace(data=[_fact_draft(f) for f in data])
    else:
        typed = FunFactsAdd(data=_fact_draft(data))

    logger.info("Validation passed: field=%s action=%s data=%s", field, action, _data_kind(data))
    return typed
