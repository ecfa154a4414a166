import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.main import app


def _receive_until(ws, event_name, limit=20):
    for _ in range(limit):
        message = ws.receive_json()
        if message["event"] == event_name:
            return message
    raise AssertionError(f"never received '{event_name}'")


def test_session_receives_users_created(admin_headers):
    token = admin_headers["Authorization"].split(" ", 1)[1]

    with TestClient(app) as client:
        with client.websocket_connect(f"/ws?token={token}") as ws:
            connected = ws.receive_json()
            assert connected["event"] == "connected"
            assert connected["data"]["user"] == "admin@example.com"

            ws.send_json({"action": "subscribe", "events": ["users:*"]})
            assert ws.receive_json()["data"] == {"events": ["users:*"]}

            res = client.post("/api/users", json={"email": "new@example.com"}, headers=admin_headers)
            assert res.status_code == 201

            message = ws.receive_json()
            assert message["event"] == "users:created"
            assert message["data"]["email"] == "new@example.com"
            assert "passwordHash" not in message["data"]


def test_ping_and_unsubscribe():
    with TestClient(app) as client:
        with client.websocket_connect("/ws?events=logs:created") as ws:
            assert ws.receive_json()["data"]["events"] == ["logs:created"]

            ws.send_json({"action": "ping"})
            assert ws.receive_json()["event"] == "pong"

            ws.send_json({"action": "unsubscribe", "events": ["logs:created"]})
            message = _receive_until(ws, "unsubscribed")
            assert message["data"] == {"events": []}


def test_unknown_action_gets_error_event():
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"action": "dance"})
            assert ws.receive_json()["event"] == "error"


def test_invalid_token_is_refused():
    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws?token=garbage") as ws:
                ws.receive_json()
