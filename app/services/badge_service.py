# app/services/badge_service.py

from typing import Dict, Iterable, List, Optional

from app.core.exceptions import NotFound
from app.core.store import CollectionStore
from app.services.audit_service import log_activity
from app.services.auth_service import public_user
from app.services.broadcast import Broadcaster
from app.services.collection_service import CollectionService


def badge_service(store: CollectionStore, broadcaster: Optional[Broadcaster]) -> CollectionService:
    return CollectionService(store, broadcaster, "badges", "Badge", event_prefix="badges")


def union(existing: Iterable, incoming: Iterable) -> List:
    """Order-preserving, de-duplicated union."""
    result = []
    for item in list(existing or []) + list(incoming or []):
        if item not in result:
            result.append(item)
    return result


def assign_badge(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    email: str,
    badge_id: str,
    actor: Optional[str] = None,
) -> Dict:
    """
    Grants a badge: its name joins the user's badges and its access tags
    join the user's specialAccess. Re-assigning is a no-op.
    """
    badge = badge_service(store, broadcaster).find(badge_id)
    if not badge:
        raise NotFound("Badge not found")

    users = list(store.get("users"))
    idx = next((i for i, u in enumerate(users) if u.get("email") == email), -1)
    if idx == -1:
        raise NotFound("User not found")

    user = users[idx]
    updated = {
        **user,
        "badges": union(user.get("badges"), [badge.get("name")]),
        "specialAccess": union(user.get("specialAccess"), badge.get("access")),
    }
    users[idx] = updated
    store.put("users", users)

    log_activity(store, broadcaster, f"Badge assigned: {badge.get('name')} to {email}", actor)
    if broadcaster:
        payload = {
            "email": email,
            "badgeId": badge_id,
            "badges": updated["badges"],
            "specialAccess": updated["specialAccess"],
        }
        broadcaster.publish("badges:assigned", payload)
        broadcaster.publish("users:updated", public_user(updated))

    return updated
