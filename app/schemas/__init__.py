from app.schemas.auth import (
    AccountResponse,
    AuthResponse,
    LoginRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
    VerificationModeRequest,
)
from app.schemas.common import ErrorResponse, Message
from app.schemas.coupon import CouponDeletedResponse, CouponFields, CouponRead, CouponStats, ImageUpload
from app.schemas.otp import OTPVerify
from app.schemas.profile import (
    ProfilePictureUpdate,
    ProfileRead,
    ProfileSave,
    ProfileSavedResponse,
    UserProfileResponse,
)

__all__ = [
    "AccountResponse",
    "AuthResponse",
    "CouponDeletedResponse",
    "CouponFields",
    "CouponRead",
    "CouponStats",
    "ErrorResponse",
    "ImageUpload",
    "LoginRequest",
    "Message",
    "OTPVerify",
    "ProfilePictureUpdate",
    "ProfileRead",
    "ProfileSave",
    "ProfileSavedResponse",
    "SignupRequest",
    "TokenResponse",
    "UserProfileResponse",
    "UserResponse",
    "VerificationModeRequest",
]
