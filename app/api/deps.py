"""Dependency providers used by FastAPI endpoints.

These helpers expose database sessions, collaborators and composed services
through FastAPI's dependency injection system so route handlers remain thin.
Tests replace `get_db_session`, `get_email_sender` and `get_asset_store`
through `app.dependency_overrides`.
"""

from typing import AsyncGenerator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UnauthorizedError
from app.db.session import get_session
from app.services.auth import AuthService
from app.services.coupons import CouponService
from app.services.email import EmailSender, send_email
from app.services.otp import OTPService
from app.services.profile import ProfileService
from app.services.session_guard import Identity, SessionGuard
from app.services.storage import AssetStore, LocalAssetStore

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async SQLAlchemy session tied to the shared engine."""

    async for session in get_session():
        yield session


def get_email_sender() -> EmailSender:
    return send_email


def get_asset_store() -> AssetStore:
    return LocalAssetStore()


def get_session_guard(session: AsyncSession = Depends(get_db_session)) -> SessionGuard:
    return SessionGuard(session)


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    guard: SessionGuard = Depends(get_session_guard),
) -> Identity:
    """Resolve the bearer token into the caller's identity (401/404 otherwise)."""

    if credentials is None:
        raise UnauthorizedError("No token provided")
    return await guard.resolve_token(credentials.credentials)


async def get_verified_identity(
    identity: Identity = Depends(get_current_identity),
    guard: SessionGuard = Depends(get_session_guard),
) -> Identity:
    return await guard.require_verified(identity)


def get_auth_service(
    session: AsyncSession = Depends(get_db_session),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    """Assemble AuthService with its session, table-backed OTP service and mailer."""

    return AuthService(session=session, otp_service=OTPService(session), email_sender=email_sender)


def get_profile_service(session: AsyncSession = Depends(get_db_session)) -> ProfileService:
    return ProfileService(session)


def get_coupon_service(
    session: AsyncSession = Depends(get_db_session),
    asset_store: AssetStore = Depends(get_asset_store),
) -> CouponService:
    return CouponService(session, asset_store)
