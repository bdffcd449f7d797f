"""Password hashing and session token helpers."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import JWTError, jwt

from app.core.config import settings


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user_id: int, email: str, expires_delta: timedelta) -> str:
    """Sign a session token carrying the user's id and email."""

    issued_at = datetime.now(timezone.utc)
    to_encode = {"id": user_id, "email": email, "iat": issued_at, "exp": issued_at + expires_delta}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Return the claims of a valid, unexpired token, otherwise None."""

    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if not isinstance(claims.get("id"), int) or not claims.get("email"):
        return None
    return claims


def session_expiry(remember_me: bool = False) -> timedelta:
    days = settings.REMEMBER_ME_TOKEN_EXPIRE_DAYS if remember_me else settings.SESSION_TOKEN_EXPIRE_DAYS
    return timedelta(days=days)
