"""OTP issuance and validation backed by the `otp_codes` table."""

import secrets
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.base import utcnow
from app.db.models.otp import OneTimeCode, OTPPurpose


def generate_otp(length: int = settings.OTP_LENGTH) -> str:
    """Create a zero-padded numeric OTP with configurable length."""
    upper_bound = 10 ** length
    return f"{secrets.randbelow(upper_bound):0{length}d}"


class OTPService:
    """Issue and validate one-time codes.

    Issuance deletes every earlier row for the same (user, purpose) before
    inserting, so only the most recent code can ever be accepted.
    """

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.session = session
        self.clock = clock

    async def issue_otp(self, user_id: int, purpose: OTPPurpose = OTPPurpose.email) -> str:
        """Store a newly generated code with an expiry and return it."""
        code = generate_otp()
        now = self.clock()
        await self.session.execute(
            delete(OneTimeCode).where(OneTimeCode.user_id == user_id, OneTimeCode.purpose == purpose)
        )
        self.session.add(
            OneTimeCode(
                user_id=user_id,
                code=code,
                purpose=purpose,
                created_at=now,
                expires_at=now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
            )
        )
        await self.session.commit()
        return code

    async def validate_otp(self, user_id: int, code: str, purpose: OTPPurpose = OTPPurpose.email) -> bool:
        """Check the submitted code and delete it to enforce single use.

        The deletion is staged on the session; the caller commits it together
        with whatever the successful verification changes.
        """
        match = await self.session.scalar(
            select(OneTimeCode.id).where(
                OneTimeCode.user_id == user_id,
                OneTimeCode.purpose == purpose,
                OneTimeCode.code == code,
                OneTimeCode.expires_at > self.clock(),
            )
        )
        if match is None:
            return False
        await self.session.execute(
            delete(OneTimeCode).where(OneTimeCode.user_id == user_id, OneTimeCode.purpose == purpose)
        )
        return True

