import asyncio
from datetime import datetime, timedelta, timezone

from jose import jwt
from sqlalchemy import delete, func, select

from app.core.config import settings
from app.core.security import create_access_token
from app.db.models.otp import OneTimeCode
from app.db.models.user import User
from tests.helpers import auth_headers


def _count(session_factory, stmt) -> int:
    async def _run() -> int:
        async with session_factory() as session:
            return await session.scalar(stmt)

    return asyncio.run(_run())


def test_signup_returns_unverified_user_and_token(client, signup) -> None:
    token, body = signup()

    assert body["message"] == "Signup successful!"
    assert body["user"]["email"] == "user@example.com"
    assert body["user"]["phone"] == "+15550001"
    assert body["user"]["isVerified"] is False
    assert "hashedPassword" not in body["user"]

    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert claims["id"] == body["user"]["id"]
    assert claims["email"] == "user@example.com"
    assert timedelta(hours=23) < timedelta(seconds=claims["exp"] - claims["iat"]) <= timedelta(days=1)


def test_signup_validation_failures(client) -> None:
    base = {"email": "a@example.com", "phone": "+1555", "password": "secret1", "confirmPassword": "secret1"}

    res = client.post("/api/auth/signup", json={**base, "email": "not-an-email"})
    assert res.status_code == 400

    res = client.post("/api/auth/signup", json={**base, "password": "short", "confirmPassword": "short"})
    assert res.status_code == 400

    res = client.post("/api/auth/signup", json={**base, "confirmPassword": "different"})
    assert res.status_code == 400
    assert "Passwords do not match" in res.json()["message"]


def test_duplicate_email_or_phone_is_a_soft_conflict(client, signup, session_factory) -> None:
    signup()

    res = client.post(
        "/api/auth/signup",
        json={"email": "user@example.com", "phone": "+19999", "password": "secret1", "confirmPassword": "secret1"},
    )
    assert res.status_code == 205
    assert res.json()["message"] == "User with this email already exists"

    res = client.post(
        "/api/auth/signup",
        json={"email": "other@example.com", "phone": "+15550001", "password": "secret1", "confirmPassword": "secret1"},
    )
    assert res.status_code == 205
    assert res.json()["message"] == "User with this phone already exists"

    assert _count(session_factory, select(func.count(User.id))) == 1


def test_login_requires_verification(client, signup, mailer) -> None:
    token, _ = signup()
    credentials = {"email": "user@example.com", "password": "secret1"}

    res = client.post("/api/auth/login", json=credentials)
    assert res.status_code == 203
    assert res.json()["message"] == "Please verify your account"

    res = client.post("/api/auth/verify-mode", json={"emailcheck": True}, headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json()["message"] == "OTP sent successfully"
    assert mailer.sent[-1][0] == "user@example.com"

    res = client.post("/api/auth/verify-otp", json={"code": mailer.last_code()}, headers=auth_headers(token))
    assert res.status_code == 200, res.text
    assert res.json()["token"]

    res = client.post("/api/auth/login", json=credentials)
    assert res.status_code == 200, res.text
    assert res.json()["user"]["isVerified"] is True


def test_bad_credentials_share_one_message(client, signup) -> None:
    signup()

    wrong_password = client.post("/api/auth/login", json={"email": "user@example.com", "password": "nope123"})
    unknown_user = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret1"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json()["message"] == unknown_user.json()["message"] == "Invalid email or password"


def test_remember_me_issues_thirty_day_token(client, verified_user) -> None:
    res = client.post(
        "/api/auth/login", json={"email": "user@example.com", "password": "secret1", "rememberMe": True}
    )
    assert res.status_code == 200
    claims = jwt.decode(res.json()["token"], settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert timedelta(seconds=claims["exp"] - claims["iat"]) == timedelta(days=30)


def test_code_cannot_be_used_twice(client, signup, mailer) -> None:
    token, _ = signup()
    client.post("/api/auth/verify-mode", json={"emailcheck": True}, headers=auth_headers(token))
    code = mailer.last_code()

    first = client.post("/api/auth/verify-otp", json={"code": code}, headers=auth_headers(token))
    second = client.post("/api/auth/verify-otp", json={"code": code}, headers=auth_headers(token))

    assert first.status_code == 200
    assert second.status_code == 205
    assert second.json()["message"] == "Please enter correct OTP"


def test_verify_otp_rejects_malformed_code(client, signup) -> None:
    token, _ = signup()
    for code in ("12345", "1234567", "12a456"):
        res = client.post("/api/auth/verify-otp", json={"code": code}, headers=auth_headers(token))
        assert res.status_code == 400, code


def test_resend_replaces_outstanding_code(client, signup, mailer, session_factory) -> None:
    token, body = signup()
    client.post("/api/auth/verify-mode", json={"emailcheck": True}, headers=auth_headers(token))
    old_code = mailer.last_code()

    res = client.post("/api/auth/resend-otp", headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json()["message"] == "OTP resent successfully"
    new_code = mailer.last_code()

    user_id = body["user"]["id"]
    assert _count(session_factory, select(func.count(OneTimeCode.id)).where(OneTimeCode.user_id == user_id)) == 1

    if old_code != new_code:
        res = client.post("/api/auth/verify-otp", json={"code": old_code}, headers=auth_headers(token))
        assert res.status_code == 205
    res = client.post("/api/auth/verify-otp", json={"code": new_code}, headers=auth_headers(token))
    assert res.status_code == 200


def test_verification_mode_requires_a_choice(client, signup, mailer) -> None:
    token, _ = signup()

    res = client.post("/api/auth/verify-mode", json={}, headers=auth_headers(token))
    assert res.status_code == 400
    assert res.json()["message"] == "Please select a verification method"

    res = client.post("/api/auth/verify-mode", json={"phonecheck": True}, headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json()["message"] == "Phone verification selected"
    assert mailer.sent == []


def test_failed_dispatch_is_a_server_error_and_keeps_code(client, signup, mailer, session_factory) -> None:
    token, body = signup()
    mailer.succeed = False

    res = client.post("/api/auth/verify-mode", json={"emailcheck": True}, headers=auth_headers(token))

    assert res.status_code == 500
    assert res.json()["message"] == "Failed to send OTP"
    stored = _count(
        session_factory, select(func.count(OneTimeCode.id)).where(OneTimeCode.user_id == body["user"]["id"])
    )
    assert stored == 1


def test_protected_routes_reject_missing_and_bad_tokens(client, signup) -> None:
    res = client.post("/api/auth/resend-otp")
    assert res.status_code == 401
    assert res.json()["message"] == "No token provided"

    res = client.post("/api/auth/resend-otp", headers=auth_headers("garbage"))
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid or expired token"

    _, body = signup()
    expired = create_access_token(body["user"]["id"], "user@example.com", timedelta(seconds=-5))
    res = client.post("/api/auth/resend-otp", headers=auth_headers(expired))
    assert res.status_code == 401
    assert res.json()["message"] == "Invalid or expired token"


def test_token_for_vanished_user_is_not_found(client, signup, session_factory) -> None:
    token, body = signup()

    async def _remove() -> None:
        async with session_factory() as session:
            await session.execute(delete(User).where(User.id == body["user"]["id"]))
            await session.commit()

    asyncio.run(_remove())

    res = client.post("/api/auth/resend-otp", headers=auth_headers(token))
    assert res.status_code == 404
    assert res.json()["message"] == "User not found"


def test_account_route_requires_verified_user(client, signup, mailer) -> None:
    token, _ = signup()

    res = client.get("/api/auth/me", headers=auth_headers(token))
    assert res.status_code == 203
    assert res.json()["message"] == "Account not verified"

    client.post("/api/auth/verify-mode", json={"emailcheck": True}, headers=auth_headers(token))
    client.post("/api/auth/verify-otp", json={"code": mailer.last_code()}, headers=auth_headers(token))

    res = client.get("/api/auth/me", headers=auth_headers(token))
    assert res.status_code == 200
    assert res.json()["user"]["email"] == "user@example.com"


def test_expired_code_is_rejected(client, signup, mailer, session_factory) -> None:
    token, body = signup()
    client.post("/api/auth/verify-mode", json={"emailcheck": True}, headers=auth_headers(token))

    async def _age_code() -> None:
        async with session_factory() as session:
            row = await session.scalar(select(OneTimeCode).where(OneTimeCode.user_id == body["user"]["id"]))
            row.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
            await session.commit()

    asyncio.run(_age_code())

    res = client.post("/api/auth/verify-otp", json={"code": mailer.last_code()}, headers=auth_headers(token))
    assert res.status_code == 205
