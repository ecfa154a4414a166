# app/services/content_service.py

from typing import Dict, List, Optional

from app.core.store import CollectionStore
from app.models.user import UserRole
from app.services.broadcast import Broadcaster
from app.services.collection_service import CollectionService

ASSIGN_ALL = "all"


def notice_service(store: CollectionStore, broadcaster: Optional[Broadcaster]) -> CollectionService:
    return CollectionService(store, broadcaster, "notices", "Notice", event_prefix="notices")


def test_service(store: CollectionStore, broadcaster: Optional[Broadcaster]) -> CollectionService:
    return CollectionService(store, broadcaster, "tests", "Test", event_prefix="tests")


def is_assigned(record: Dict, user: Dict) -> bool:
    assigned = record.get("assignedStudents", ASSIGN_ALL)
    if assigned is None or assigned == ASSIGN_ALL:
        return True
    if isinstance(assigned, str):
        assigned = [assigned]
    keys = {user.get("email"), user.get("username")}
    return ASSIGN_ALL in assigned or any(k in assigned for k in keys if k)


def visible_to(records: List[Dict], user: Dict) -> List[Dict]:
    """Students only see what they are assigned to; other roles see everything."""
    if user.get("role") != UserRole.Student.value:
        return records
    return [r for r in records if is_assigned(r, user)]


def broadcast_notice(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    notice_id: str,
    actor: Optional[str] = None,
) -> Dict:
    service = notice_service(store, broadcaster)
    notice = service.get(notice_id)
    service.audit("broadcast", notice, actor)
    if broadcaster:
        broadcaster.publish("notices:broadcast", notice)
    return notice
