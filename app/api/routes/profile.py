"""Profile endpoints; every route acts on the caller's own profile."""

from fastapi import APIRouter, Depends

from app.api import deps
from app.schemas.common import Message
from app.schemas.profile import ProfilePictureUpdate, ProfileSave, ProfileSavedResponse, UserProfileResponse
from app.services.profile import ProfileService
from app.services.session_guard import Identity

router = APIRouter(prefix="/api/auth/profile", tags=["profile"])


@router.post("", response_model=ProfileSavedResponse)
async def save_profile(
    payload: ProfileSave,
    identity: Identity = Depends(deps.get_current_identity),
    profile_service: ProfileService = Depends(deps.get_profile_service),
) -> ProfileSavedResponse:
    profile = await profile_service.save(identity, payload)
    return ProfileSavedResponse(message="Profile saved successfully", profile=profile)


@router.get("", response_model=UserProfileResponse)
async def get_profile(
    identity: Identity = Depends(deps.get_current_identity),
    profile_service: ProfileService = Depends(deps.get_profile_service),
) -> UserProfileResponse:
    return await profile_service.get(identity)


@router.delete("", response_model=Message)
async def delete_profile(
    identity: Identity = Depends(deps.get_current_identity),
    profile_service: ProfileService = Depends(deps.get_profile_service),
) -> Message:
    await profile_service.delete(identity)
    return Message(message="Profile deleted successfully")


@router.put("/picture", response_model=ProfileSavedResponse)
async def update_profile_picture(
    payload: ProfilePictureUpdate,
    identity: Identity = Depends(deps.get_current_identity),
    profile_service: ProfileService = Depends(deps.get_profile_service),
) -> ProfileSavedResponse:
    profile = await profile_service.update_picture(identity, payload.image_url)
    return ProfileSavedResponse(message="Profile picture updated successfully", profile=profile)
