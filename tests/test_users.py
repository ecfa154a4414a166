import pytest


@pytest.mark.asyncio
async def test_create_user_then_list_has_exactly_one(client, admin_headers):
    res = await client.post("/api/users", json={"email": "a@x.com", "role": "student"}, headers=admin_headers)
    assert res.status_code == 201
    created = res.json()
    assert created["username"] == "a@x.com"
    assert "passwordHash" not in created

    res = await client.get("/api/users", headers=admin_headers)
    assert res.status_code == 200
    matches = [u for u in res.json() if u["email"] == "a@x.com"]
    assert len(matches) == 1
    assert matches[0]["locked"] is False
    assert matches[0]["badges"] == []
    assert matches[0]["specialAccess"] == []


@pytest.mark.asyncio
async def test_duplicate_email_conflicts(client, admin_headers):
    payload = {"email": "dup@example.com", "password": "password123"}
    assert (await client.post("/api/users", json=payload, headers=admin_headers)).status_code == 201

    res = await client.post("/api/users", json=payload, headers=admin_headers)
    assert res.status_code == 409
    assert res.json() == {"error": "User already exists"}


@pytest.mark.asyncio
async def test_missing_email_is_validation_error(client, admin_headers):
    res = await client.post("/api/users", json={"name": "No Email"}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["error"] == "Email is required"


@pytest.mark.asyncio
async def test_password_is_stored_hashed(client, admin_headers, store):
    await client.post("/api/users", json={"email": "p@example.com", "password": "secret"}, headers=admin_headers)
    stored = next(u for u in store.get("users") if u["email"] == "p@example.com")
    assert "password" not in stored
    assert stored["passwordHash"] and stored["passwordHash"] != "secret"


@pytest.mark.asyncio
async def test_update_and_lock_user(client, admin_headers, new_user):
    new_user("s1@example.com")

    res = await client.put("/api/users/s1@example.com", json={"name": "Renamed"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["name"] == "Renamed"

    res = await client.patch("/api/users/s1@example.com/lock", json={"locked": True}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["locked"] is True


@pytest.mark.asyncio
async def test_blank_password_update_keeps_existing_hash(client, admin_headers, new_user, store):
    before = new_user("s1@example.com", password="password123")["passwordHash"]

    for blank in ("", "   ", None):
        res = await client.put("/api/users/s1@example.com", json={"password": blank}, headers=admin_headers)
        assert res.status_code == 400
        assert res.json() == {"error": "Password cannot be empty"}

    stored = next(u for u in store.get("users") if u["email"] == "s1@example.com")
    assert stored["passwordHash"] == before

    res = await client.post("/api/login", json={"email": "s1@example.com", "password": "password123"})
    assert res.status_code == 200


@pytest.mark.asyncio
async def test_update_missing_user_is_not_found(client, admin_headers):
    res = await client.put("/api/users/ghost@example.com", json={"name": "x"}, headers=admin_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "User not found"}


@pytest.mark.asyncio
async def test_delete_user(client, admin_headers, new_user, store):
    new_user("gone@example.com")

    res = await client.delete("/api/users/gone@example.com", headers=admin_headers)
    assert res.status_code == 200
    assert all(u["email"] != "gone@example.com" for u in store.get("users"))

    res = await client.delete("/api/users/gone@example.com", headers=admin_headers)
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_search_users(client, admin_headers, new_user):
    new_user("alice@example.com", name="Alice")
    new_user("bob@example.com", name="Bob")

    res = await client.get("/api/search/users", params={"q": "ali"}, headers=admin_headers)
    assert res.status_code == 200
    assert [u["email"] for u in res.json()] == ["alice@example.com"]


@pytest.mark.asyncio
async def test_students_cannot_manage_users(client, student_headers):
    res = await client.get("/api/users", headers=student_headers)
    assert res.status_code == 403

    res = await client.post("/api/users", json={"email": "x@example.com"}, headers=student_headers)
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client):
    res = await client.get("/api/users")
    assert res.status_code == 401
    assert "error" in res.json()


@pytest.mark.asyncio
async def test_mutations_are_audited(client, admin_headers, store):
    await client.post("/api/users", json={"email": "audit@example.com"}, headers=admin_headers)
    assert store.get("logs")[0]["action"] == "User created: audit@example.com"
    assert store.get("logs")[0]["actor"] == "admin@example.com"
