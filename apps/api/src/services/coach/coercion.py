"""
Best-effort shape repairs applied to a parsed profile update before validation.

Only the enumerated (field, action) rules below ever fire, each at most once.
Anything else passes through untouched and is left for the validator to judge.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoercionResult:
    update: Any
    was_coerced: bool
    # Pre-coercion payload, kept for diagnostics only
    original: Any


def _looks_like_prompt_item(data: dict) -> bool:
    return bool(data.get("promptText")) and bool(data.get("answerText"))


def _looks_like_fact_item(data: dict) -> bool:
    return bool(data.get("label")) and bool(data.get("value"))


def _bio_text_from_object(data: dict) -> str | None:
    if isinstance(data.get("bio"), str):
        return None
    for key in ("text", "content"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def coerce_update(update: Any) -> CoercionResult:
    """Return a repaired copy of update; the input is never mutated."""
    if not isinstance(update, dict) or not update.get("field") or not update.get("action"):
        return CoercionResult(update=update, was_coerced=False, original=update)

    field = update.get("field")
    action = update.get("action")
    data = update.get("data")
    fixed = copy.deepcopy(update)
    rule: str | None = None

    if field == "promptAnswers" and action == "replace":
        if isinstance(data, dict) and _looks_like_prompt_item(data):
            fixed["data"] = [copy.deepcopy(data)]
            rule = "wrapped single prompt object into list"
    elif field == "promptAnswers" and action == "add":
        if isinstance(data, list) and data:
            fixed["data"] = copy.deepcopy(data[0])
            rule = "took first element of list for add"
    elif field == "bio" and action == "replace":
        if isinstance(data, dict):
            text = _bio_text_from_object(data)
            if text is not None:
                fixed["data"] = text
                rule = "extracted bio text from object"
    elif field == "funFacts" and action == "replace":
        if isinstance(data, dict) and _looks_like_fact_item(data):
            fixed["data"] = [copy.deepcopy(data)]
            rule = "wrapped single fun fact object into list"

    if rule is None:
        return CoercionResult(update=update, was_coerced=False, original=update)

    logger.info("Coercion applied (%s/%s): %s; before=%s after=%s", field, action, rule, update, fixed)
    return CoercionResult(update=fixed, was_coerced=True, original=update)
