import pytest


@pytest.mark.asyncio
async def test_profile_update_is_limited_to_own_fields(client, new_user, headers_for, broadcaster):
    new_user("me@example.com", password="password123")
    session = broadcaster.register(events=["profiles:updated"])
    headers = headers_for("me@example.com")

    res = await client.put("/api/profiles/me", json={"name": "New Name", "role": "admin"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["name"] == "New Name"
    assert res.json()["role"] == "student"

    assert session.queue.get_nowait()["data"]["name"] == "New Name"


@pytest.mark.asyncio
async def test_change_password(client, new_user, headers_for):
    new_user("me@example.com", password="password123")
    headers = headers_for("me@example.com")

    res = await client.post("/api/account/change-password", json={
        "old_password": "wrong", "new_password": "x",
    }, headers=headers)
    assert res.status_code == 400
    assert res.json() == {"error": "Old password incorrect"}

    res = await client.post("/api/account/change-password", json={
        "old_password": "password123", "new_password": "password123",
    }, headers=headers)
    assert res.json() == {"error": "New password must be different"}

    res = await client.post("/api/account/change-password", json={
        "old_password": "password123", "new_password": "better-password",
    }, headers=headers)
    assert res.status_code == 200

    res = await client.post("/api/login", json={"email": "me@example.com", "password": "better-password"})
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_profile_rejects_blank_password(client, new_user, headers_for):
    new_user("me@example.com", password="password123")
    headers = headers_for("me@example.com")

    res = await client.put("/api/profiles/me", json={"password": ""}, headers=headers)
    assert res.status_code == 400
    assert res.json() == {"error": "Password cannot be empty"}

    res = await client.post("/api/login", json={"email": "me@example.com", "password": "password123"})
    assert res.status_code == 200
