# app/services/audit_service.py

import uuid
from datetime import datetime, timezone
from typing import Optional

from loguru import logger

from app.core.config import settings
from app.core.store import CollectionStore
from app.services.broadcast import Broadcaster


def log_activity(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    action: str,
    actor: Optional[str] = None,
) -> dict:
    """
    Prepends an audit entry to the logs collection (newest first) and
    announces it as `logs:created`.
    """
    entry = {
        "id": uuid.uuid4().hex,
        "action": action,
        "actor": actor or "system",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    logs = [entry] + list(store.get("logs"))
    if settings.MAX_LOG_ENTRIES and len(logs) > settings.MAX_LOG_ENTRIES:
        logs = logs[: settings.MAX_LOG_ENTRIES]

    try:
        store.put("logs", logs)
    except OSError as e:
        # The mutation that triggered this already succeeded
        logger.error(f"AUDIT LOG ERROR: {e}")
        return entry

    logger.info(f"[audit] {entry['actor']}: {action}")
    if broadcaster:
        broadcaster.publish("logs:created", entry)
    return entry


def list_logs(store: CollectionStore, limit: int = 100, actor: Optional[str] = None) -> list:
    logs = store.get("logs")
    if actor:
        logs = [entry for entry in logs if entry.get("actor") == actor]
    return logs[:limit]
