"""Extended user profile: one row per user, lifecycle independent of the user."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ServerError, ValidationError
from app.db.base import utcnow
from app.db.models.profile import Profile
from app.db.models.user import User
from app.schemas.profile import ProfileRead, ProfileSave, UserProfileResponse
from app.services.session_guard import Identity

logger = logging.getLogger(__name__)


def build_user_profile(user: User, profile: Profile) -> UserProfileResponse:
    return UserProfileResponse(
        id=user.id,
        email=user.email,
        phone=user.phone,
        is_verified=user.is_verified,
        created_at=user.created_at,
        profile=ProfileRead.model_validate(profile),
    )


class ProfileService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _find(self, user_id: int) -> Profile | None:
        return await self.session.scalar(select(Profile).where(Profile.user_id == user_id))

    async def _commit(self, event: str, user_id: int) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(event, extra={"user_id": user_id, "error": str(exc)})
            raise ServerError("Failed to save profile")

    async def save(self, identity: Identity, payload: ProfileSave) -> UserProfileResponse:
        """Create the profile on first save, otherwise update the supplied fields."""

        user = await self.session.get(User, identity.id)
        if user is None:
            raise NotFoundError("User not found")

        fields = payload.model_dump(exclude_unset=True)
        profile = await self._find(user.id)
        if profile is not None:
            for name, value in fields.items():
                setattr(profile, name, value)
            profile.updated_at = utcnow()
        else:
            profile = Profile(user_id=user.id, email=user.email, phone=user.phone, **fields)
            self.session.add(profile)

        await self._commit("profile_save_failed", user.id)
        await self.session.refresh(profile)
        return build_user_profile(user, profile)

    async def get(self, identity: Identity) -> UserProfileResponse:
        row = (
            await self.session.execute(
                select(User, Profile).join(Profile, Profile.user_id == User.id).where(User.id == identity.id)
            )
        ).first()
        if row is None:
            raise NotFoundError("Profile not found")
        user, profile = row
        return build_user_profile(user, profile)

    async def delete(self, identity: Identity) -> None:
        profile = await self._find(identity.id)
        if profile is None:
            raise NotFoundError("Profile not found or already deleted")
        await self.session.delete(profile)
        await self._commit("profile_delete_failed", identity.id)

    async def update_picture(self, identity: Identity, image_url: str | None) -> UserProfileResponse:
        if not image_url or not image_url.strip():
            raise ValidationError("Image URL is required")

        profile = await self._find(identity.id)
        if profile is None:
            raise NotFoundError("Profile not found")
        profile.profile_picture_url = image_url.strip()
        profile.updated_at = utcnow()
        await self._commit("profile_picture_update_failed", identity.id)
        return await self.get(identity)
