"""Profile store: in-process profiles keyed by id. The coach commits previews through apply_update."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from src.domain import Profile
from src.schemas import CreateProfileRequest, PatchProfileRequest

logger = logging.getLogger(__name__)

# profile_id -> Profile. For production with multiple instances, use a database.
_profiles: dict[str, Profile] = {}


class ProfileNotFoundError(LookupError):
    """Raised when a profile id is unknown."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_empty_profile() -> Profile:
    return Profile(id=uuid.uuid4().hex[:13])


def _with_positions(profile: Profile) -> Profile:
    """Stored lists always carry sort_order == position, whatever the client sent."""
    return profile.model_copy(
        update={
            "prompt_answers": [
                p.model_copy(update={"sort_order": i}) for i, p in enumerate(profile.prompt_answers)
            ],
            "fun_facts": [f.model_copy(update={"sort_order": i}) for i, f in enumerate(profile.fun_facts)],
        }
    )


def _create_profile(body: CreateProfileRequest | None = None) -> Profile:
    profile = create_empty_profile()
    if body is not None:
        fields: dict[str, Any] = body.model_dump(exclude_unset=True)
        if fields:
            profile = Profile.model_validate({**profile.model_dump(), **fields})
    profile = _with_positions(profile)
    _profiles[profile.id] = profile
    logger.info("Profile created: profile_id=%s", profile.id)
    return profile


def _get_profile(profile_id: str) -> Profile:
    profile = _profiles.get(profile_id)
    if profile is None:
        raise ProfileNotFoundError(f"Profile {profile_id} not found.")
    return profile


def _update_profile(profile_id: str, body: PatchProfileRequest) -> Profile:
    current = _get_profile(profile_id)
    fields = body.model_dump(exclude_unset=True)
    updated = _with_positions(
        Profile.model_validate({**current.model_dump(), **fields, "updated_at": _now()})
    )
    _profiles[profile_id] = updated
    return updated


def _apply_update(profile: Profile) -> Profile:
    """Commit a whole profile value (e.g. an accepted coach preview) over the stored one."""
    _get_profile(profile.id)
    committed = _with_positions(profile).model_copy(update={"updated_at": _now()})
    _profiles[profile.id] = committed
    logger.info("Profile updated from coach preview: profile_id=%s", profile.id)
    return committed


def _delete_profile(profile_id: str) -> None:
    if _profiles.pop(profile_id, None) is not None:
        logger.info("Profile deleted: profile_id=%s", profile_id)


class ProfileService:
    @staticmethod
    def create_profile(body: CreateProfileRequest | None = None) -> Profile:
        return _create_profile(body)

    @staticmethod
    def get_profile(profile_id: str) -> Profile:
        return _get_profile(profile_id)

    @staticmethod
    def update_profile(profile_id: str, body: PatchProfileRequest) -> Profile:
        return _update_profile(profile_id, body)

    @staticmethod
    def apply_update(profile: Profile) -> Profile:
        return _apply_update(profile)

    @staticmethod
    def delete_profile(profile_id: str) -> None:
        _delete_profile(profile_id)

    @staticmethod
    def clear() -> None:
        _profiles.clear()


profile_service = ProfileService()
