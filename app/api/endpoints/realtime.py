"""
Real-time channel for the dashboards.

Connect with: ws://host/ws?token=<jwt>&events=users:*,logs:created

Client messages:
- {"action": "subscribe", "events": [...]}    -> "subscribed"
- {"action": "unsubscribe", "events": [...]}  -> "unsubscribed"
- {"action": "ping"}                          -> "pong"
"""
import asyncio
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect
from loguru import logger

from app.api.deps import user_from_token

router = APIRouter(tags=["Realtime"])


def _split_events(raw) -> list:
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(e).strip() for e in (raw or []) if str(e).strip()]


@router.websocket("/ws")
async def realtime_websocket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    events: Optional[str] = Query(None),
):
    store = websocket.app.state.store
    broadcaster = websocket.app.state.broadcaster

    user_email = None
    if token:
        try:
            user_email = user_from_token(store, token)["email"]
        except HTTPException as e:
            await websocket.close(code=4001, reason=str(e.detail))
            return

    await websocket.accept()
    session = broadcaster.register(websocket, user_email, _split_events(events))
    writer = asyncio.create_task(broadcaster.pump(session))

    broadcaster.send_direct(session.id, "connected", {
        "sessionId": session.id,
        "user": user_email,
        "events": sorted(session.subscriptions),
    })

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                broadcaster.send_direct(session.id, "error", {"message": "Messages must be JSON"})
                continue

            action = message.get("action") if isinstance(message, dict) else None

            if action == "subscribe":
                current = broadcaster.subscribe(session.id, _split_events(message.get("events")))
                broadcaster.send_direct(session.id, "subscribed", {"events": current})

            elif action == "unsubscribe":
                current = broadcaster.unsubscribe(session.id, _split_events(message.get("events")))
                broadcaster.send_direct(session.id, "unsubscribed", {"events": current})

            elif action == "ping":
                broadcaster.send_direct(session.id, "pong", {})

            else:
                broadcaster.send_direct(session.id, "error", {"message": f"Unknown action '{action}'"})

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket session {session.id} failed: {e}")
    finally:
        broadcaster.unregister(session.id)
        writer.cancel()
