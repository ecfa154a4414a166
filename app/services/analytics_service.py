# app/services/analytics_service.py

from collections import Counter
from typing import Dict, Optional

from app.core.store import CollectionStore
from app.models.enums import TriggerType
from app.services.broadcast import Broadcaster
from app.services.collection_service import CollectionService


class AnalyticsService(CollectionService):
    name_fields = ("type",)

    def audit(self, action, record, actor):
        # Analytics events are high-volume; they are not written to the audit log
        pass


def analytics_service(store: CollectionStore, broadcaster: Optional[Broadcaster]) -> AnalyticsService:
    return AnalyticsService(store, broadcaster, "analytics", "Analytics event", event_prefix="analytics")


def summarize(store: CollectionStore) -> Dict:
    messages = [e for e in store.get("analytics") if e.get("type") == "message"]

    type_counts = {t.value: 0 for t in TriggerType}
    type_counts.update(Counter(e.get("messageType") or TriggerType.Normal.value for e in messages))

    return {
        "totalMessages": len(messages),
        "activeUsers": sorted({e.get("user") for e in messages if e.get("user")}),
        "triggerUsage": dict(Counter(e.get("trigger") for e in messages if e.get("trigger"))),
        "typeCounts": type_counts,
        "lockCount": sum(1 for e in messages if e.get("messageType") not in (None, TriggerType.Normal.value)),
    }
