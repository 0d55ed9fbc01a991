"""
Preview materializer: current profile + typed update -> hypothetical next profile.

The input profile is never mutated. Only the targeted collection is rebuilt;
every other field is shared with the input by reference (model_copy). sort_order
always equals list position on the touched collection.
"""

from __future__ import annotations

from typing import Optional

from src.core.constants import FACT_ID_PREFIX, PROMPT_ID_PREFIX
from src.domain import (
    FUN_FACT_SOURCES,
    BioReplace,
    FunFact,
    FunFactDraft,
    FunFactsAdd,
    FunFactsReplace,
    Profile,
    ProfileUpdate,
    PromptAnswer,
    PromptAnswersAdd,
    PromptAnswersReplace,
)


def _unused_id(prefix: str, start: int, taken: set[str]) -> str:
    n = start
    while f"{prefix}-{n}" in taken:
        n += 1
    return f"{prefix}-{n}"


def _prompt_from_draft(draft, index: int, item_id: str) -> PromptAnswer:
    return PromptAnswer(
        id=item_id,
        prompt_id=draft.prompt_id or f"{PROMPT_ID_PREFIX}-{index}",
        prompt_text=draft.prompt_text or "",
        answer_text=draft.answer_text or "",
        source="llm",
        sort_order=index,
    )


def _fact_from_draft(draft: FunFactDraft, index: int, item_id: str, source: str) -> FunFact:
    return FunFact(
        id=item_id,
        label=draft.label or "",
        value=draft.value or "",
        source=source,
        icon=draft.icon,
        sort_order=index,
    )


def _item_ids(drafts, prefix: str) -> list[str]:
    """Keep the first use of each coach-supplied id; synthesize <prefix>-<i> for the rest without collisions."""
    taken = {d.id for d in drafts if d.id}
    kept: set[str] = set()
    ids: list[str] = []
    for i, d in enumerate(drafts):
        if d.id and d.id not in kept:
            kept.add(d.id)
            ids.append(d.id)
            continue
        item_id = _unused_id(prefix, i, taken)
        taken.add(item_id)
        ids.append(item_id)
    return ids


def _replace_prompts(profile: Profile, update: PromptAnswersReplace) -> Profile:
    ids = _item_ids(update.data, PROMPT_ID_PREFIX)
    prompts = [_prompt_from_draft(d, i, ids[i]) for i, d in enumerate(update.data)]
    return profile.model_copy(update={"prompt_answers": prompts})


def _add_prompt(profile: Profile, update: PromptAnswersAdd) -> Profile:
    n = len(profile.prompt_answers)
    taken = {p.id for p in profile.prompt_answers}
    prompt = _prompt_from_draft(update.data, n, _unused_id(PROMPT_ID_PREFIX, n, taken))
    return profile.model_copy(update={"prompt_answers": [*profile.prompt_answers, prompt]})


def _replace_facts(profile: Profile, update: FunFactsReplace) -> Profile:
    ids = _item_ids(update.data, FACT_ID_PREFIX)
    facts = [
        _fact_from_draft(d, i, ids[i], d.source if d.source in FUN_FACT_SOURCES else "llm")
        for i, d in enumerate(update.data)
    ]
    return profile.model_copy(update={"fun_facts": facts})


def _add_fact(profile: Profile, update: FunFactsAdd) -> Profile:
    n = len(profile.fun_facts)
    taken = {f.id for f in profile.fun_facts}
    fact = _fact_from_draft(update.data, n, _unused_id(FACT_ID_PREFIX, n, taken), "llm")
    return profile.model_copy(update={"fun_facts": [*profile.fun_facts, fact]})


def materialize_preview(profile: Optional[Profile], update: Optional[ProfileUpdate]) -> Optional[Profile]:
    """
    Apply update to a copy of profile.

    Returns None when there is no profile or no pending update, so "no preview"
    stays distinct from "preview equals current".
    """
    if profile is None or update is None:
        return None
    if isinstance(update, BioReplace):
        return profile.model_copy(update={"bio": update.text})
    if isinstance(update, PromptAnswersReplace):
        return _replace_prompts(profile, update)
    if isinstance(update, PromptAnswersAdd):
        return _add_prompt(profile, update)
    if isinstance(update, FunFactsReplace):
        return _replace_facts(profile, update)
    if isinstance(update, FunFactsAdd):
        return _add_fact(profile, update)
    raise TypeError(f"Unsupported profile update: {type(update).__name__}")
