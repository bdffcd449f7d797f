"""Bearer-token resolution for protected routes."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, NotVerifiedError, UnauthorizedError
from app.core.security import decode_access_token
from app.db.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller."""

    id: int
    email: str


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class SessionGuard:
    """Stateless token check plus a user lookup against the credential store."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve(self, authorization: str | None) -> Identity:
        """Turn an `Authorization` header into an Identity.

        Expired and malformed tokens fail with the same message.
        """
        token = extract_bearer_token(authorization)
        if token is None:
            raise UnauthorizedError("No token provided")
        return await self.resolve_token(token)

    async def resolve_token(self, token: str) -> Identity:
        claims = decode_access_token(token)
        if claims is None:
            raise UnauthorizedError("Invalid or expired token")

        user = await self.session.get(User, claims["id"])
        if user is None:
            logger.info("token_user_missing", extra={"user_id": claims["id"]})
            raise NotFoundError("User not found")
        return Identity(id=user.id, email=user.email)

    async def require_verified(self, identity: Identity) -> Identity:
        user = await self.session.get(User, identity.id)
        if user is None:
            raise NotFoundError("User not found")
        if not user.is_verified:
            raise NotVerifiedError("Account not verified")
        return identity
