"""Pydantic schemas for OTP verification."""

from pydantic import Field

from app.schemas.common import CamelModel


class OTPVerify(CamelModel):
    """Payload used when submitting a received OTP code for validation."""

    code: str = Field(min_length=6, max_length=6, pattern=r"^[0-9]{6}$")
