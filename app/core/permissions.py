# app/core/permissions.py

from typing import Any, Dict, Optional

from app.models.user import UserRole

PERMISSION_ALL = "all"
PERMISSION_BADGE = "badge"


def normalize_role(role) -> str:
    if isinstance(role, UserRole):
        return role.value.lower().strip()
    return str(role or "").lower().strip()


def is_admin(actor: Optional[Dict[str, Any]]) -> bool:
    return bool(actor) and normalize_role(actor.get("role")) == UserRole.Admin.value


def authorize(actor: Optional[Dict[str, Any]], required_permission: Optional[str]) -> bool:
    """
    Decide whether `actor` may perform something guarded by `required_permission`.

    - admins always pass
    - "all" (or no permission at all) always passes
    - "badge" passes when the actor holds at least one badge
    - anything else must be present in the actor's specialAccess

    Pass the user record as currently stored, not a copy cached at login.
    """
    if is_admin(actor):
        return True

    required = (required_permission or PERMISSION_ALL).strip()
    if required == PERMISSION_ALL:
        return True

    if not actor:
        return False

    if required == PERMISSION_BADGE:
        return len(actor.get("badges") or []) > 0

    return required in (actor.get("specialAccess") or [])
