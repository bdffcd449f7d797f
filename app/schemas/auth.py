"""Pydantic schemas for authentication-related payloads and responses."""

from datetime import datetime

from pydantic import ConfigDict, EmailStr, Field, field_validator, model_validator

from app.schemas.common import CamelModel


class SignupRequest(CamelModel):
    """Payload for signup requests."""

    email: EmailStr
    phone: str = Field(min_length=1, max_length=20)
    password: str = Field(min_length=6)
    confirm_password: str

    @field_validator("phone")
    @classmethod
    def _strip_phone(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Phone is required")
        return value

    @model_validator(mode="after")
    def _passwords_match(self) -> "SignupRequest":
        if self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(CamelModel):
    """Payload for login attempts."""

    email: EmailStr
    password: str
    remember_me: bool = False


class VerificationModeRequest(CamelModel):
    """Which channel the caller wants to verify; exactly one is expected."""

    emailcheck: bool = False
    phonecheck: bool = False


class UserResponse(CamelModel):
    """User projection; never includes the password hash."""

    id: int
    email: EmailStr
    phone: str
    is_verified: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(CamelModel):
    """Returned by signup and login."""

    message: str
    user: UserResponse
    token: str


class TokenResponse(CamelModel):
    """Returned after a successful OTP verification."""

    message: str
    token: str


class AccountResponse(CamelModel):
    user: UserResponse
