from fastapi import APIRouter, Depends, HTTPException, status

from src.dependencies import get_profile_or_404
from src.domain import Profile
from src.schemas import CreateProfileRequest, PatchProfileRequest
from src.services.profile import ProfileNotFoundError, profile_service

router = APIRouter(prefix="/profiles", tags=["profile"])


@router.post("", response_model=Profile, status_code=status.HTTP_201_CREATED)
async def create_profile(body: CreateProfileRequest | None = None):
    """Create a profile; an empty body gives an empty profile ready for onboarding."""
    return profile_service.create_profile(body)


@router.get("/{profile_id}", response_model=Profile)
async def get_profile(profile: Profile = Depends(get_profile_or_404)):
    return profile


@router.patch("/{profile_id}", response_model=Profile)
async def patch_profile(profile_id: str, body: PatchProfileRequest):
    try:
        return profile_service.update_profile(profile_id, body)
    except ProfileNotFoundError:
        raise HTTPException(status_code=404, detail="Profile not found")


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(profile: Profile = Depends(get_profile_or_404)):
    profile_service.delete_profile(profile.id)
