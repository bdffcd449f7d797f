"""Schemas for the extended user profile."""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, EmailStr, Field

from app.db.models.profile import Gender
from app.schemas.common import CamelModel

# Upper bound of the 32-bit `house_no` column
MAX_HOUSE_NO = 2**31 - 1


class ProfileSave(CamelModel):
    """Fields accepted by the profile upsert; only `middleName` may be omitted."""

    first_name: str = Field(min_length=1, max_length=100)
    middle_name: Optional[str] = Field(default=None, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    gender: Gender
    house_no: int = Field(ge=0, le=MAX_HOUSE_NO)
    city_town_village: str = Field(min_length=1, max_length=100)
    district: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    country: str = Field(min_length=1, max_length=100)


class ProfilePictureUpdate(CamelModel):
    image_url: Optional[str] = None


class ProfileRead(CamelModel):
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    gender: Gender
    house_no: int
    city_town_village: str
    district: str
    state: str
    country: str
    profile_picture_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserProfileResponse(CamelModel):
    """User joined with their profile."""

    id: int
    email: EmailStr
    phone: str
    is_verified: bool
    created_at: datetime
    profile: ProfileRead


class ProfileSavedResponse(CamelModel):
    message: str
    profile: UserProfileResponse
