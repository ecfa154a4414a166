# app/services/collection_service.py

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from app.core.exceptions import NotFound
from app.core.store import CollectionStore
from app.services.audit_service import log_activity
from app.services.broadcast import Broadcaster

# Fields that callers may never overwrite through update()
IMMUTABLE_FIELDS = ("id", "createdAt")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


class CollectionService:
    """
    Create / read / update / delete over one list collection of the store.

    Every successful mutation is persisted, written to the audit log and
    published as `<event_prefix>:created|updated|deleted`.
    """

    name_fields: Tuple[str, ...] = ("name", "title", "trigger", "email")

    def __init__(
        self,
        store: CollectionStore,
        broadcaster: Optional[Broadcaster],
        collection: str,
        label: str,
        event_prefix: Optional[str] = None,
        key_field: str = "id",
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.collection = collection
        self.label = label
        self.event_prefix = event_prefix or collection
        self.key_field = key_field

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------
    def display_name(self, record: Dict[str, Any]) -> str:
        for f in self.name_fields:
            if record.get(f):
                return str(record[f])
        return str(record.get(self.key_field, ""))

    def publish(self, action: str, payload: Any):
        if self.broadcaster:
            self.broadcaster.publish(f"{self.event_prefix}:{action}", payload)

    def audit(self, action: str, record: Dict[str, Any], actor: Optional[str]):
        log_activity(
            self.store,
            self.broadcaster,
            f"{self.label} {action}: {self.display_name(record)}",
            actor,
        )

    def _index_of(self, items: List[Dict[str, Any]], key: Any) -> int:
        for idx, item in enumerate(items):
            if item.get(self.key_field) == key:
                return idx
        return -1

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------
    def list(self) -> List[Dict[str, Any]]:
        return self.store.get(self.collection)

    def find(self, key: Any) -> Optional[Dict[str, Any]]:
        items = self.store.get(self.collection)
        idx = self._index_of(items, key)
        return items[idx] if idx != -1 else None

    def get(self, key: Any) -> Dict[str, Any]:
        record = self.find(key)
        if record is None:
            raise NotFound(f"{self.label} not found")
        return record

    # ------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------
    def build_record(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        record = copy.deepcopy(fields)
        record["id"] = new_id()
        record["createdAt"] = utc_now_iso()
        return record

    def create(self, fields: Dict[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
        record = self.build_record(fields)

        items = list(self.store.get(self.collection))
        items.append(record)
        self.store.put(self.collection, items)

        self.audit("created", record, actor)
        self.publish("created", record)
        return record

    def update(self, key: Any, partial: Dict[str, Any], actor: Optional[str] = None) -> Dict[str, Any]:
        items = list(self.store.get(self.collection))
        idx = self._index_of(items, key)
        if idx == -1:
            raise NotFound(f"{self.label} not found")

        # Shallow merge: nested containers are replaced, never merged
        changes = {k: copy.deepcopy(v) for k, v in partial.items() if k not in IMMUTABLE_FIELDS}
        record = {**items[idx], **changes}
        items[idx] = record
        self.store.put(self.collection, items)

        self.audit("updated", record, actor)
        self.publish("updated", record)
        return record

    def delete(self, key: Any, actor: Optional[str] = None) -> bool:
        items = list(self.store.get(self.collection))
        idx = self._index_of(items, key)
        if idx == -1:
            return False

        record = items.pop(idx)
        self.store.put(self.collection, items)

        self.audit("deleted", record, actor)
        self.publish("deleted", {self.key_field: key})
        return True
