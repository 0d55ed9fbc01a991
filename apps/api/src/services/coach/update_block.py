"""Find and parse the ```json:profile_update fenced block in an assistant reply."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from src.core.constants import PROFILE_UPDATE_FENCE_TAG

logger = logging.getLogger(__name__)

_BLOCK_RE = re.compile(r"```" + re.escape(PROFILE_UPDATE_FENCE_TAG) + r"\s*([\s\S]*?)```")


@dataclass(frozen=True)
class ExtractedUpdate:
    """
    Result of scanning one assistant reply.

    found=False: the turn suggested no edit (normal, valid).
    found=True, valid=False: a block was present but its body is not JSON.
    found=True, valid=True: raw_update holds the parsed body, still unvalidated.
    """

    display_text: str
    raw_update: Any = None
    valid: bool = True
    found: bool = False


def strip_update_blocks(text: str) -> str:
    """Reply text with every profile-update block (and its fences) removed, trimmed."""
    return _BLOCK_RE.sub("", text or "").strip()


def extract_update_block(text: str) -> ExtractedUpdate:
    content = text or ""
    match = _BLOCK_RE.search(content)
    if not match:
        return ExtractedUpdate(display_text=content.strip())

    display_text = strip_update_blocks(content)
    json_str = match.group(1).strip()
    try:
        raw_update = json.loads(json_str)
    except ValueError as e:
        logger.warning("Profile update block is not valid JSON: %s (body=%s)", e, json_str[:500])
        return ExtractedUpdate(display_text=display_text, raw_update=None, valid=False, found=True)

    return ExtractedUpdate(display_text=display_text, raw_update=raw_update, valid=True, found=True)
