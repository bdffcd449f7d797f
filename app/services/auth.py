"""Authentication domain logic orchestrating users, OTP, and session tokens."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AccountExistsError,
    IncorrectCodeError,
    NotFoundError,
    NotVerifiedError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)
from app.core.security import create_access_token, get_password_hash, session_expiry, verify_password
from app.db.base import utcnow
from app.db.models.otp import OTPPurpose
from app.db.models.user import User
from app.schemas.auth import LoginRequest, SignupRequest
from app.services.email import EmailSender, send_otp_email
from app.services.otp import OTPService
from app.services.session_guard import Identity

logger = logging.getLogger(__name__)


def issue_session_token(user: User, remember_me: bool = False) -> str:
    return create_access_token(user.id, user.email, session_expiry(remember_me))


class AuthService:
    """High-level service used by API routes; holds the DB session, OTP service and mailer."""

    def __init__(self, session: AsyncSession, otp_service: OTPService, email_sender: EmailSender):
        self.session = session
        self.otp_service = otp_service
        self.email_sender = email_sender

    async def _get_user_by_email(self, email: str) -> User | None:
        return await self.session.scalar(select(User).where(User.email == email))

    async def _get_user_by_phone(self, phone: str) -> User | None:
        return await self.session.scalar(select(User).where(User.phone == phone))

    async def _get_user(self, user_id: int) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def signup(self, payload: SignupRequest) -> tuple[User, str]:
        """Create an unverified user and return it with a 1-day session token.

        Email is checked before phone. A unique-constraint race with a
        concurrent signup surfaces as the same conflict.
        """

        if await self._get_user_by_email(payload.email):
            raise AccountExistsError("User with this email already exists")
        if await self._get_user_by_phone(payload.phone):
            raise AccountExistsError("User with this phone already exists")

        user = User(
            email=payload.email,
            phone=payload.phone,
            hashed_password=get_password_hash(payload.password),
            is_verified=False,
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise AccountExistsError("User with this email or phone already exists")
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("user_create_failed", extra={"error": str(exc)})
            raise ServerError("Failed to create user")
        await self.session.refresh(user)

        logger.info("user_signed_up", extra={"user_id": user.id})
        return user, issue_session_token(user)

    async def login(self, payload: LoginRequest) -> tuple[User, str]:
        """Authenticate a verified user; unknown email and wrong password look identical."""

        user = await self._get_user_by_email(payload.email)
        if not user or not verify_password(payload.password, user.hashed_password):
            raise UnauthorizedError("Invalid email or password")

        if not user.is_verified:
            raise NotVerifiedError("Please verify your account")

        return user, issue_session_token(user, remember_me=payload.remember_me)

    async def select_verification_mode(self, identity: Identity, emailcheck: bool, phonecheck: bool) -> str:
        """Start verification on the chosen channel and return the acknowledgement."""

        if not emailcheck and not phonecheck:
            raise ValidationError("Please select a verification method")

        user = await self._get_user(identity.id)
        if emailcheck:
            await self._dispatch_email_otp(user)
            return "OTP sent successfully"
        # Phone delivery is acknowledged but not implemented
        return "Phone verification selected"

    async def resend_otp(self, identity: Identity) -> None:
        """Replace any outstanding email code with a fresh one and send it."""

        user = await self._get_user(identity.id)
        await self._dispatch_email_otp(user)

    async def _dispatch_email_otp(self, user: User) -> None:
        try:
            code = await self.otp_service.issue_otp(user.id, OTPPurpose.email)
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("otp_store_failed", extra={"user_id": user.id, "error": str(exc)})
            raise ServerError("Failed to generate OTP")

        # A failed send leaves the stored code in place until reissue or expiry
        if not await send_otp_email(self.email_sender, user.email, code):
            raise ServerError("Failed to send OTP")
        logger.info("otp_issued", extra={"user_id": user.id, "purpose": OTPPurpose.email.value})

    async def verify_otp(self, identity: Identity, code: str) -> str:
        """Consume a matching code, mark the user verified and return a fresh token."""

        user = await self._get_user(identity.id)
        try:
            is_valid = await self.otp_service.validate_otp(user.id, code, OTPPurpose.email)
            if not is_valid:
                raise IncorrectCodeError("Please enter correct OTP")

            if not user.is_verified:
                user.is_verified = True
                user.updated_at = utcnow()
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("otp_verify_failed", extra={"user_id": user.id, "error": str(exc)})
            raise ServerError("Failed to verify OTP")
        await self.session.refresh(user)

        logger.info("user_verified", extra={"user_id": user.id})
        return issue_session_token(user)

    async def get_account(self, identity: Identity) -> User:
        return await self._get_user(identity.id)
