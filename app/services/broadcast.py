"""
Broadcast Layer

Fans change events out to every connected WebSocket session:
- each session owns a bounded FIFO queue and a writer task draining it
- publish() only enqueues, so request handlers never wait on sockets
- delivery is at-most-once: a full queue drops the event, a dead socket
  drops the session; clients reconcile with a full re-fetch on reconnect
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set

from fastapi import WebSocket
from loguru import logger

WILDCARD = "*"


def event_matches(pattern: str, event_name: str) -> bool:
    """Exact name, "*" or "<prefix>:*"."""
    if pattern == WILDCARD or pattern == event_name:
        return True
    if pattern.endswith(":*"):
        return event_name.startswith(pattern[:-1])
    return False


def make_message(event_name: str, payload: Any) -> Dict[str, Any]:
    return {
        "event": event_name,
        "data": payload,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@dataclass
class Session:
    """One connected client."""
    id: str
    queue: asyncio.Queue
    websocket: Optional[WebSocket] = None
    user_email: Optional[str] = None
    subscriptions: Set[str] = field(default_factory=lambda: {WILDCARD})
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    dropped: int = 0

    def wants(self, event_name: str) -> bool:
        return any(event_matches(p, event_name) for p in self.subscriptions)


class Broadcaster:
    """
    Owns the set of connected sessions and delivers published events to them.
    """

    def __init__(self, queue_size: int = 256):
        self.queue_size = queue_size
        self._sessions: Dict[str, Session] = {}

    # ----------------------------------------------------
    # Session lifecycle
    # ----------------------------------------------------
    def register(
        self,
        websocket: Optional[WebSocket] = None,
        user_email: Optional[str] = None,
        events: Optional[Iterable[str]] = None,
    ) -> Session:
        session = Session(
            id=uuid.uuid4().hex,
            queue=asyncio.Queue(maxsize=self.queue_size),
            websocket=websocket,
            user_email=user_email,
        )
        if events:
            session.subscriptions = {e.strip() for e in events if e and e.strip()} or {WILDCARD}

        self._sessions[session.id] = session
        logger.info(f"Session {session.id} connected (user={user_email}, events={sorted(session.subscriptions)})")
        return session

    def unregister(self, session_id: str):
        session = self._sessions.pop(session_id, None)
        if session:
            logger.info(f"Session {session_id} disconnected")

    def subscribe(self, session_id: str, events: Iterable[str]) -> List[str]:
        session = self._sessions[session_id]
        # An explicit subscription narrows the default catch-all
        if session.subscriptions == {WILDCARD}:
            session.subscriptions = set()
        session.subscriptions.update(e.strip() for e in events if e and e.strip())
        return sorted(session.subscriptions)

    def unsubscribe(self, session_id: str, events: Iterable[str]) -> List[str]:
        session = self._sessions[session_id]
        session.subscriptions.difference_update(e.strip() for e in events if e)
        return sorted(session.subscriptions)

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def sessions(self) -> List[Session]:
        return list(self._sessions.values())

    # ----------------------------------------------------
    # Delivery
    # ----------------------------------------------------
    def publish(self, event_name: str, payload: Any = None) -> int:
        """
        Enqueue `payload` for every session subscribed to `event_name`.
        Returns how many sessions it was queued for.
        """
        message = make_message(event_name, payload)
        delivered = 0

        for session in list(self._sessions.values()):
            if not session.wants(event_name):
                continue
            try:
                session.queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                session.dropped += 1
                logger.warning(f"Session {session.id} queue full; dropped '{event_name}'")

        logger.debug(f"Published '{event_name}' to {delivered} session(s)")
        return delivered

    def send_direct(self, session_id: str, event_name: str, payload: Any = None) -> bool:
        """Queue a message for one session regardless of its subscriptions."""
        session = self._sessions.get(session_id)
        if not session:
            return False
        try:
            session.queue.put_nowait(make_message(event_name, payload))
            return True
        except asyncio.QueueFull:
            session.dropped += 1
            return False

    async def pump(self, session: Session):
        """Drain a session's queue into its websocket until the socket fails."""
        while True:
            message = await session.queue.get()
            try:
                await session.websocket.send_json(message)
            except Exception as e:
                logger.error(f"Error sending to session {session.id}: {e}")
                self.unregister(session.id)
                return
