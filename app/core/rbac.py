# app/core/rbac.py

from typing import Dict, Optional

from fastapi import Depends, HTTPException, status

from app.api.deps import get_current_user
from app.core.permissions import authorize, is_admin, normalize_role
from app.models.user import UserRole


def AllowAccess(*allowed_roles, permission: Optional[str] = None):
    """
    Flexible RBAC:
    - Accepts UserRole values or raw strings
    - Case-insensitive
    - Admin bypasses everything
    - Other users pass with an allowed role, or with `permission`
      granted through badges / specialAccess
    """

    normalized_allowed = {normalize_role(r) for r in allowed_roles}

    async def access_checker(current_user: Dict = Depends(get_current_user)):
        if is_admin(current_user):
            return current_user

        if normalize_role(current_user.get("role")) in normalized_allowed:
            return current_user

        if permission and authorize(current_user, permission):
            return current_user

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied for role '{current_user.get('role')}'"
        )

    return access_checker


# ------------------------------------------------------------
# Exposed dependencies for routers
# ------------------------------------------------------------
require_admin = AllowAccess(UserRole.Admin)
require_staff = AllowAccess(UserRole.Faculty, UserRole.Moderator)
require_moderation = AllowAccess(UserRole.Moderator, permission="moderation")
require_content_editor = AllowAccess(UserRole.Faculty, permission="content")
require_attendance_editor = AllowAccess(UserRole.Faculty, permission="attendance")
