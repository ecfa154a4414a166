# app/services/chatbot_service.py

from typing import Dict, Optional

from loguru import logger

from app.core.store import CollectionStore
from app.models.enums import ALERT_TRIGGER_TYPES, TriggerType
from app.services.analytics_service import analytics_service
from app.services.broadcast import Broadcaster
from app.services.collection_service import CollectionService, new_id, utc_now_iso

CHATBOT_LOCK_SECONDS = 10
FALLBACK_REPLY = "Sorry, I do not understand."

DEFAULT_TRIGGERS = [
    {"trigger": "hello", "response": "Hi! How can I help you?", "type": TriggerType.Normal.value},
    {"trigger": "urgent", "response": "Attention! This is an urgent alert!", "type": TriggerType.Alert.value},
]


def trigger_service(store: CollectionStore, broadcaster: Optional[Broadcaster]) -> CollectionService:
    return CollectionService(store, broadcaster, "chatbot_triggers", "Chatbot trigger", event_prefix="chatbot")


def seed_default_triggers(store: CollectionStore) -> int:
    if store.get("chatbot_triggers"):
        return 0
    service = trigger_service(store, None)
    for trigger in DEFAULT_TRIGGERS:
        service.create(trigger, actor="system")
    logger.info(f"Seeded {len(DEFAULT_TRIGGERS)} default chatbot triggers")
    return len(DEFAULT_TRIGGERS)


def match_trigger(store: CollectionStore, message: str) -> Optional[Dict]:
    text = (message or "").lower()
    for trigger in store.get("chatbot_triggers"):
        keyword = str(trigger.get("trigger") or "").lower()
        if keyword and keyword in text:
            return trigger
    return None


def answer(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    message: str,
    user: str,
) -> Dict:
    trigger = match_trigger(store, message)

    if trigger:
        reply = trigger.get("response", "")
        trigger_type = trigger.get("type") or TriggerType.Normal.value
    else:
        reply = FALLBACK_REPLY
        trigger_type = TriggerType.Normal.value

    lock = None
    if trigger_type in {t.value for t in ALERT_TRIGGER_TYPES}:
        lock = {"seconds": CHATBOT_LOCK_SECONDS, "message": reply}

    entry = {
        "id": new_id(),
        "user": user,
        "message": message,
        "reply": reply,
        "type": trigger_type,
        "timestamp": utc_now_iso(),
    }
    store.put("chat_history", list(store.get("chat_history")) + [entry])
    if broadcaster:
        broadcaster.publish("chat:created", entry)

    analytics_service(store, broadcaster).create(
        {
            "type": "message",
            "user": user,
            "trigger": trigger.get("trigger") if trigger else None,
            "messageType": trigger_type,
        },
        actor=user,
    )

    return {"reply": reply, "type": trigger_type, "trigger": trigger.get("trigger") if trigger else None, "lock": lock}


def chat_history(store: CollectionStore, user: Optional[str] = None, limit: int = 200):
    history = store.get("chat_history")
    if user:
        history = [h for h in history if h.get("user") == user]
    return history[-limit:]
