# app/services/data_service.py

from typing import Dict, List, Optional

from app.core.exceptions import ValidationError
from app.core.store import COLLECTIONS, CollectionStore
from app.services.audit_service import log_activity
from app.services.broadcast import Broadcaster

EXPORT_KEYS = {meta.export_key: meta for meta in COLLECTIONS.values()}


def export_all(store: CollectionStore) -> Dict:
    return store.snapshot()


def import_all(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    data: Dict,
    actor: Optional[str] = None,
) -> List[str]:
    """
    Replaces every collection present in `data` (by export key) wholesale.
    Shapes are checked up front so a bad payload changes nothing.
    """
    if not isinstance(data, dict):
        raise ValidationError("Import payload must be an object")

    replacements = {}
    for key, value in data.items():
        meta = EXPORT_KEYS.get(key)
        if meta is None or value is None:
            continue
        if not isinstance(value, meta.default_kind):
            raise ValidationError(f"'{key}' must be a {'list' if meta.default_kind is list else 'mapping'}")
        replacements[meta.name] = value

    if not replacements:
        raise ValidationError("Nothing to import")

    for name, value in replacements.items():
        store.put(name, value)

    imported = sorted(replacements)
    log_activity(store, broadcaster, f"Data imported: {', '.join(imported)}", actor)
    if broadcaster:
        broadcaster.publish("data:imported", {"collections": imported})
    return imported
