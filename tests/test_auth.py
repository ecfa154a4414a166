from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from app.core.exceptions import AuthError
from app.main import app
from app.services.auth_service import ResetCodeStore, finalize_password_reset, get_user_by_email


@pytest.mark.asyncio
async def test_login_success_updates_last_login(client, new_user, store):
    new_user("user@example.com", password="password123")

    res = await client.post("/api/login", json={"email": "user@example.com", "password": "password123"})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["email"] == "user@example.com"
    assert "passwordHash" not in body["user"]
    assert get_user_by_email(store, "user@example.com")["lastLogin"] is not None

    res = await client.get("/api/profiles/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert res.status_code == 200
    assert res.json()["email"] == "user@example.com"


@pytest.mark.asyncio
async def test_login_failures_are_distinct(client, new_user):
    new_user("user@example.com", password="password123")
    new_user("locked@example.com", password="password123", locked=True)
    new_user("nopass@example.com", password=None)

    res = await client.post("/api/login", json={"email": "missing@example.com", "password": "x"})
    assert res.status_code == 404

    res = await client.post("/api/login", json={"email": "locked@example.com", "password": "password123"})
    assert res.status_code == 403
    assert res.json() == {"error": "Account locked"}

    res = await client.post("/api/login", json={"email": "user@example.com", "password": "wrong"})
    assert res.status_code == 401
    assert res.json() == {"error": "Invalid credentials"}

    res = await client.post("/api/login", json={"email": "nopass@example.com", "password": ""})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_temporary_lock_blocks_login_until_expiry(client, new_user, store):
    until = (datetime.now(timezone.utc) + timedelta(seconds=30)).isoformat()
    new_user("temp@example.com", password="password123", lockedUntil=until)

    res = await client.post("/api/login", json={"email": "temp@example.com", "password": "password123"})
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_send_2fa_unknown_user(client):
    res = await client.post("/api/send-2fa", json={"email": "ghost@example.com"})
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_reset_password_flow(client, new_user, store):
    new_user("reset@example.com", password="oldpassword")

    with patch("app.api.endpoints.auth.send_reset_code_email") as mock_send:
        res = await client.post("/api/send-2fa", json={"email": "reset@example.com"})
    assert res.status_code == 200
    assert res.json()["sent"] is True

    code = app.state.reset_codes.get("reset@example.com").code
    assert len(code) == 6 and code.isdigit()
    mock_send.assert_called_once_with("reset@example.com", code, 5)

    res = await client.post("/api/reset-password", json={
        "email": "reset@example.com", "code": "not-it", "newPassword": "newpassword",
    })
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid code"}

    res = await client.post("/api/reset-password", json={
        "email": "reset@example.com", "code": code, "newPassword": "newpassword",
    })
    assert res.status_code == 200

    res = await client.post("/api/login", json={"email": "reset@example.com", "password": "newpassword"})
    assert res.status_code == 200

    # Codes are single use
    res = await client.post("/api/reset-password", json={
        "email": "reset@example.com", "code": code, "newPassword": "another",
    })
    assert res.json() == {"error": "No reset request found"}


@pytest.mark.asyncio
async def test_expired_code_leaves_password_unchanged(client, new_user, store):
    new_user("late@example.com", password="oldpassword")
    before = get_user_by_email(store, "late@example.com")["passwordHash"]

    record = app.state.reset_codes.issue("late@example.com")
    record.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)

    res = await client.post("/api/reset-password", json={
        "email": "late@example.com", "code": record.code, "newPassword": "newpassword",
    })
    assert res.status_code == 400
    assert "Code expired" in res.json()["error"]
    assert get_user_by_email(store, "late@example.com")["passwordHash"] == before
    assert app.state.reset_codes.get("late@example.com") is None


@pytest.mark.asyncio
async def test_invalid_token_rejected(client):
    res = await client.get("/api/profiles/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_bad_reset_codes_are_auth_errors(store, new_user):
    new_user("code@example.com", password="oldpassword")
    codes = ResetCodeStore()

    with pytest.raises(AuthError) as exc:
        finalize_password_reset(store, None, codes, "code@example.com", "123456", "newpassword")
    assert exc.value.status_code == 400
    assert exc.value.message == "No reset request found"

    record = codes.issue("code@example.com")
    wrong = "000000" if record.code != "000000" else "111111"
    with pytest.raises(AuthError) as exc:
        finalize_password_reset(store, None, codes, "code@example.com", wrong, "newpassword")
    assert exc.value.message == "Invalid code"
