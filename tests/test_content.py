import pytest


@pytest.mark.asyncio
async def test_notice_visibility_follows_assignment(client, faculty_headers, new_user, headers_for):
    new_user("s1@example.com")
    new_user("s2@example.com")

    await client.post("/api/notices", json={"title": "For everyone", "content": "Holiday"}, headers=faculty_headers)
    await client.post("/api/notices", json={
        "title": "For s1", "content": "See me", "assignedStudents": ["s1@example.com"],
    }, headers=faculty_headers)

    res = await client.get("/api/notices", headers=headers_for("s1@example.com"))
    assert sorted(n["title"] for n in res.json()) == ["For everyone", "For s1"]

    res = await client.get("/api/notices", headers=headers_for("s2@example.com"))
    assert [n["title"] for n in res.json()] == ["For everyone"]

    # Staff see everything
    res = await client.get("/api/notices", headers=faculty_headers)
    assert len(res.json()) == 2


@pytest.mark.asyncio
async def test_unassigned_notice_is_hidden_by_id(client, faculty_headers, new_user, headers_for):
    new_user("s2@example.com")
    notice = (await client.post("/api/notices", json={
        "title": "Private", "assignedStudents": ["s1@example.com"],
    }, headers=faculty_headers)).json()

    res = await client.get(f"/api/notices/{notice['id']}", headers=headers_for("s2@example.com"))
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_rebroadcast_notice(client, faculty_headers, broadcaster):
    notice = (await client.post("/api/notices", json={"title": "Fire drill"}, headers=faculty_headers)).json()
    session = broadcaster.register(events=["notices:broadcast"])

    res = await client.post(f"/api/notices/{notice['id']}/broadcast", headers=faculty_headers)
    assert res.status_code == 200

    message = session.queue.get_nowait()
    assert message["data"]["id"] == notice["id"]


@pytest.mark.asyncio
async def test_students_cannot_write_notices(client, student_headers):
    res = await client.post("/api/notices", json={"title": "Hi"}, headers=student_headers)
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_content_tag_allows_writes(client, new_user, headers_for):
    new_user("helper@example.com", specialAccess=["content"])

    res = await client.post("/api/tests", json={"title": "Quiz", "questions": [{"q": "2+2"}]},
                            headers=headers_for("helper@example.com"))
    assert res.status_code == 201
    assert res.json()["questions"] == [{"q": "2+2"}]


@pytest.mark.asyncio
async def test_test_crud(client, faculty_headers, broadcaster):
    session = broadcaster.register(events=["tests:*"])

    created = (await client.post("/api/tests", json={"title": "Midterm"}, headers=faculty_headers)).json()
    res = await client.put(f"/api/tests/{created['id']}", json={"duration": 60}, headers=faculty_headers)
    assert res.json()["duration"] == 60
    assert res.json()["title"] == "Midterm"

    res = await client.delete(f"/api/tests/{created['id']}", headers=faculty_headers)
    assert res.status_code == 200

    events = [session.queue.get_nowait() for _ in range(session.queue.qsize())]
    assert [e["event"] for e in events] == ["tests:created", "tests:updated", "tests:deleted"]
    assert events[-1]["data"] == {"id": created["id"]}
