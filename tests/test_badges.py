import pytest

from app.services.badge_service import assign_badge, badge_service


@pytest.mark.asyncio
async def test_badge_grants_special_access(client, admin_headers, new_user):
    new_user("a@x.com")

    res = await client.post("/api/badges", json={"name": "Star", "access": ["vip"]}, headers=admin_headers)
    assert res.status_code == 201
    badge = res.json()
    assert badge["id"] and badge["createdAt"]

    res = await client.post("/api/badges/assign", json={"email": "a@x.com", "badgeId": badge["id"]}, headers=admin_headers)
    assert res.status_code == 200
    assert "vip" in res.json()["specialAccess"]
    assert res.json()["badges"] == ["Star"]
    assert "passwordHash" not in res.json()


def test_assign_badge_is_idempotent(store, broadcaster, new_user):
    new_user("a@x.com")
    badge = badge_service(store, None).create({"name": "Star", "access": ["vip", "lab"]})

    assign_badge(store, broadcaster, "a@x.com", badge["id"])
    user = assign_badge(store, broadcaster, "a@x.com", badge["id"])

    assert user["badges"] == ["Star"]
    assert user["specialAccess"] == ["vip", "lab"]


@pytest.mark.asyncio
async def test_assign_unknown_badge_or_user(client, admin_headers, new_user, store):
    new_user("a@x.com")
    badge = badge_service(store, None).create({"name": "Star", "access": []})

    res = await client.post("/api/badges/assign", json={"email": "a@x.com", "badgeId": "nope"}, headers=admin_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Badge not found"}

    res = await client.post("/api/badges/assign", json={"email": "ghost@x.com", "badgeId": badge["id"]}, headers=admin_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "User not found"}


@pytest.mark.asyncio
async def test_badge_crud(client, admin_headers):
    created = (await client.post("/api/badges", json={"name": "Helper"}, headers=admin_headers)).json()

    res = await client.put(f"/api/badges/{created['id']}", json={"effects": ["glow"]}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["effects"] == ["glow"]
    assert res.json()["name"] == "Helper"
    assert res.json()["createdAt"] == created["createdAt"]

    res = await client.get(f"/api/badges/{created['id']}", headers=admin_headers)
    assert res.status_code == 200

    res = await client.delete(f"/api/badges/{created['id']}", headers=admin_headers)
    assert res.status_code == 200

    res = await client.get(f"/api/badges/{created['id']}", headers=admin_headers)
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_update_cannot_change_id(client, admin_headers):
    created = (await client.post("/api/badges", json={"name": "Helper"}, headers=admin_headers)).json()

    res = await client.put(f"/api/badges/{created['id']}", json={"name": "Renamed", "id": "hijack"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["id"] == created["id"]


@pytest.mark.asyncio
async def test_students_can_read_but_not_write_badges(client, student_headers):
    assert (await client.get("/api/badges", headers=student_headers)).status_code == 200
    assert (await client.post("/api/badges", json={"name": "Self"}, headers=student_headers)).status_code == 403


@pytest.mark.asyncio
async def test_assign_normalizes_email_domain(client, admin_headers, new_user, store):
    new_user("a@x.com")
    badge = badge_service(store, None).create({"name": "Star", "access": []})

    res = await client.post("/api/badges/assign", json={"email": "a@X.COM", "badgeId": badge["id"]}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["email"] == "a@x.com"
