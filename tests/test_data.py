import pytest


@pytest.mark.asyncio
async def test_export_contains_every_collection(client, admin_headers):
    res = await client.get("/api/export", headers=admin_headers)
    assert res.status_code == 200
    data = res.json()
    for key in ("users", "badges", "masterCommands", "chatbot", "notices", "tests",
                "attendance", "logs", "analytics", "chatHistory", "locks", "warnings", "trash"):
        assert key in data
    assert data["users"][0]["email"] == "admin@example.com"


@pytest.mark.asyncio
async def test_import_replaces_present_collections_only(client, admin_headers, store, broadcaster):
    store.put("notices", [{"id": "old", "title": "Old"}])
    session = broadcaster.register(events=["data:imported"])

    res = await client.post("/api/import", json={
        "badges": [{"id": "b1", "name": "Star", "access": []}],
        "masterCommands": [],
    }, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["imported"] == ["badges", "master_commands"]

    assert store.get("badges") == [{"id": "b1", "name": "Star", "access": []}]
    assert store.get("notices") == [{"id": "old", "title": "Old"}]
    assert session.queue.get_nowait()["data"] == {"collections": ["badges", "master_commands"]}


@pytest.mark.asyncio
async def test_import_with_bad_shape_changes_nothing(client, admin_headers, store):
    store.put("badges", [{"id": "keep"}])

    res = await client.post("/api/import", json={
        "badges": [],
        "locks": ["not", "a", "mapping"],
    }, headers=admin_headers)
    assert res.status_code == 400
    assert store.get("badges") == [{"id": "keep"}]


@pytest.mark.asyncio
async def test_import_requires_known_keys(client, admin_headers):
    res = await client.post("/api/import", json={"grades": []}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json() == {"error": "Nothing to import"}


@pytest.mark.asyncio
async def test_export_is_admin_only(client, student_headers):
    assert (await client.get("/api/export", headers=student_headers)).status_code == 403


@pytest.mark.asyncio
async def test_notify_publishes_event(client, admin_headers, broadcaster):
    session = broadcaster.register(events=["notify"])

    res = await client.post("/api/notify", json={"message": "Server restart at 5"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["delivered"] == 1

    message = session.queue.get_nowait()
    assert message["data"]["message"] == "Server restart at 5"
    assert message["data"]["from"] == "admin@example.com"


@pytest.mark.asyncio
async def test_logs_and_analytics_endpoints(client, admin_headers, student_headers):
    res = await client.post("/api/logs", json={"msg": "Opened dashboard"}, headers=student_headers)
    assert res.status_code == 201
    assert res.json()["actor"] == "student@example.com"

    res = await client.get("/api/logs", params={"actor": "student@example.com"}, headers=admin_headers)
    assert res.json()[0]["action"] == "Opened dashboard"

    assert (await client.get("/api/logs", headers=student_headers)).status_code == 403

    res = await client.post("/api/analytics", json={"type": "page_view", "page": "home"}, headers=student_headers)
    assert res.status_code == 201
    assert res.json()["user"] == "student@example.com"

    res = await client.get("/api/analytics", headers=admin_headers)
    assert [e["type"] for e in res.json()] == ["page_view"]
