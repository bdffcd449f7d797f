import asyncio
import os
import tempfile
from collections.abc import Generator

# Settings are read at import time, so the environment has to be ready first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["COUPON_SCHEDULER_ENABLED"] = "false"
os.environ["MEDIA_ROOT"] = tempfile.mkdtemp(prefix="coupon-media-")

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.api import deps
from app.db import models  # noqa: F401
from app.db.base import Base
from app.main import app
from app.services.coupons import CouponService
from tests.helpers import FakeClock, InMemoryAssetStore, RecordingMailer, auth_headers


@pytest.fixture
def session_factory(tmp_path) -> Generator[async_sessionmaker, None, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async def init_models() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_models())
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def asset_store() -> InMemoryAssetStore:
    return InMemoryAssetStore()


@pytest.fixture
def client(session_factory, mailer, asset_store, clock) -> Generator[TestClient, None, None]:
    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    def override_get_coupon_service(session=Depends(deps.get_db_session)) -> CouponService:
        return CouponService(session, asset_store, clock)

    app.dependency_overrides[deps.get_db_session] = override_get_db_session
    app.dependency_overrides[deps.get_email_sender] = lambda: mailer
    app.dependency_overrides[deps.get_asset_store] = lambda: asset_store
    app.dependency_overrides[deps.get_coupon_service] = override_get_coupon_service
    test_client = TestClient(app)
    yield test_client
    test_client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register a user through the API and return (token, body)."""

    def _signup(email: str = "user@example.com", phone: str = "+15550001", password: str = "secret1"):
        res = client.post(
            "/api/auth/signup",
            json={"email": email, "phone": phone, "password": password, "confirmPassword": password},
        )
        assert res.status_code == 200, res.text
        body = res.json()
        return body["token"], body

    return _signup


@pytest.fixture
def verified_user(client, signup, mailer):
    """A user who completed email verification; returns the fresh token."""

    token, _ = signup()
    res = client.post("/api/auth/verify-mode", json={"emailcheck": True}, headers=auth_headers(token))
    assert res.status_code == 200, res.text
    res = client.post("/api/auth/verify-otp", json={"code": mailer.last_code()}, headers=auth_headers(token))
    assert res.status_code == 200, res.text
    return res.json()["token"]
