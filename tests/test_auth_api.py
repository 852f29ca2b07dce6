import logging

import pytest
from fastapi import Depends
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import OtpIssueConflictError
from app.main import app
from app.repositories import UserOtpRepository, UserRepository
from app.routers import auth as auth_router
from app.services.auth_service import AuthService

pytestmark = pytest.mark.anyio

SIGNUP = {"name": "A", "email": "a@x.com", "password": "pw1", "phone": "555"}


async def _signup(client, payload=None):
    return await client.post("/api/auth/signup", json=payload or SIGNUP)


async def _login(client, email, password):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


async def test_health(client):
    resp = await client.get("/api/auth/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "OK"
    assert "timestamp" in body


async def test_password_reset_scenario(client, notifier):
    signup_resp = await _signup(client)
    assert signup_resp.status_code == 201
    signup_body = signup_resp.json()
    assert signup_body["success"] is True
    assert signup_body["data"]["user"]["email"] == "a@x.com"
    assert "password" not in signup_body["data"]["user"]
    assert "password_hash" not in signup_body["data"]["user"]
    assert signup_body["data"]["token"]

    login_resp = await _login(client, "a@x.com", "pw1")
    assert login_resp.status_code == 200
    assert login_resp.json()["data"]["token"]

    wrong_resp = await _login(client, "a@x.com", "wrong")
    assert wrong_resp.status_code == 401
    assert wrong_resp.json()["success"] is False

    forgot_resp = await client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
    assert forgot_resp.status_code == 200
    code = notifier.last_code_for("a@x.com")
    assert len(code) == 6 and code.isdigit()
    # 验证码只通过通知通道投递
    forgot_body = forgot_resp.json()
    assert code not in forgot_body["message"]
    assert forgot_body["data"] is None

    reset_resp = await client.post(
        "/api/auth/reset-password",
        json={"email": "a@x.com", "otp": code, "newPassword": "pw2"},
    )
    assert reset_resp.status_code == 200
    assert reset_resp.json()["success"] is True

    assert (await _login(client, "a@x.com", "pw1")).status_code == 401
    assert (await _login(client, "a@x.com", "pw2")).status_code == 200


async def test_duplicate_signup_returns_conflict(client):
    assert (await _signup(client)).status_code == 201

    resp = await _signup(client, {**SIGNUP, "name": "B"})

    assert resp.status_code == 409
    body = resp.json()
    assert body["success"] is False
    assert body["data"] is None


async def test_login_unknown_email_matches_wrong_password(client):
    await _signup(client)

    unknown = await _login(client, "nobody@x.com", "pw1")
    wrong = await _login(client, "a@x.com", "nope")

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json()["message"] == wrong.json()["message"]


async def test_forgot_password_unknown_email_returns_not_found(client, notifier):
    resp = await client.post("/api/auth/forgot-password", json={"email": "nobody@x.com"})

    assert resp.status_code == 404
    assert resp.json()["success"] is False
    assert notifier.sent == []


async def test_reused_code_is_rejected(client, notifier):
    await _signup(client)
    await client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
    code = notifier.last_code_for("a@x.com")
    payload = {"email": "a@x.com", "otp": code, "newPassword": "pw2"}

    assert (await client.post("/api/auth/reset-password", json=payload)).status_code == 200

    again = await client.post("/api/auth/reset-password", json={**payload, "newPassword": "pw3"})
    assert again.status_code == 400
    assert again.json()["message"] == "Invalid or expired OTP"


async def test_second_forgot_password_invalidates_first_code(client, notifier, monkeypatch):
    from app.services import auth_service

    codes = iter(["111111", "222222"])
    monkeypatch.setattr(auth_service, "generate_otp", lambda length: next(codes))
    await _signup(client)

    await client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
    await client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
    assert [code for _, code in notifier.sent] == ["111111", "222222"]

    first = await client.post(
        "/api/auth/reset-password",
        json={"email": "a@x.com", "otp": "111111", "newPassword": "pw2"},
    )
    assert first.status_code == 400

    second = await client.post(
        "/api/auth/reset-password",
        json={"email": "a@x.com", "otp": "222222", "newPassword": "pw2"},
    )
    assert second.status_code == 200


async def test_concurrent_forgot_password_returns_conflict_envelope(client, notifier, caplog):
    class RacingOtpRepository(UserOtpRepository):
        async def invalidate_all(self, user_id, purpose) -> int:
            return 0

    def racing_service(db: AsyncSession = Depends(get_db)):
        return AuthService(UserRepository(db), RacingOtpRepository(db))

    await _signup(client)
    app.dependency_overrides[auth_router.get_auth_service] = racing_service
    try:
        first = await client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
        with caplog.at_level(logging.WARNING, logger="app.main"):
            second = await client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
    finally:
        app.dependency_overrides.pop(auth_router.get_auth_service, None)

    assert first.status_code == 200
    assert second.status_code == 409
    body = second.json()
    assert body["success"] is False
    assert body["message"] == OtpIssueConflictError().message
    assert body["data"] is None
    assert len(notifier.sent) == 1
    assert "OTP_ISSUE_CONFLICT" in caplog.text


async def test_signup_validation_errors_are_mapped_per_field(client):
    resp = await client.post(
        "/api/auth/signup",
        json={"name": " ", "email": "not-an-email", "password": "pw1"},
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert set(body["data"]) == {"name", "email", "phone"}


async def test_reset_password_validation_uses_request_field_names(client):
    resp = await client.post(
        "/api/auth/reset-password",
        json={"email": "a@x.com", "otp": "12ab"},
    )

    assert resp.status_code == 400
    assert set(resp.json()["data"]) == {"otp", "newPassword"}


async def test_me_returns_user_for_issued_token(client):
    token = (await _signup(client)).json()["data"]["token"]

    resp = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 200
    assert resp.json()["data"]["email"] == "a@x.com"


async def test_me_requires_token(client):
    resp = await client.get("/api/auth/me")

    assert resp.status_code == 401
    assert resp.json()["success"] is False


async def test_unexpected_error_does_not_leak_details(db_setup):
    class BrokenService:
        async def login(self, email, password):
            raise RuntimeError("database password is hunter2")

    app.dependency_overrides[auth_router.get_auth_service] = lambda: BrokenService()
    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            resp = await _login(ac, "a@x.com", "pw1")
    finally:
        app.dependency_overrides.pop(auth_router.get_auth_service, None)

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "An unexpected error occurred"
    assert "hunter2" not in resp.text
