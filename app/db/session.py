"""Async engine and session factory shared by request handlers and the coupon scheduler."""

from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def _normalize_database_url(url: str) -> str:
    if url.startswith("postgresql://") and "+asyncpg" not in url:
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _engine_options(url: str) -> dict[str, Any]:
    # SQLite (local runs and tests) has no server connections to recycle
    if url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True}


database_url = _normalize_database_url(settings.DATABASE_URL)
engine = create_async_engine(database_url, future=True, echo=False, **_engine_options(database_url))
async_session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request; it is the store handle injected into services."""
    async with async_session_factory() as session:
        yield session
