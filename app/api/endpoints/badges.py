# app/api/endpoints/badges.py

from typing import Dict

from fastapi import APIRouter, Depends, status

from app.api.deps import get_broadcaster, get_current_user, get_store
from app.core.exceptions import NotFound
from app.core.rbac import require_admin
from app.core.store import CollectionStore
from app.schemas.content import AssignBadgeRequest, BadgeCreate, BadgeUpdate
from app.services.auth_service import public_user
from app.services.badge_service import assign_badge, badge_service
from app.services.broadcast import Broadcaster

router = APIRouter(prefix="/api/badges", tags=["Badges"])


@router.get("")
async def list_badges(
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(get_current_user),
):
    return badge_service(store, None).list()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_badge(
    data: BadgeCreate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    return badge_service(store, broadcaster).create(data.model_dump(), actor=current_user["email"])


# -------------------------------------------------------------------
# Assign a badge to a user (declared before /{badge_id})
# -------------------------------------------------------------------
@router.post("/assign")
async def assign(
    data: AssignBadgeRequest,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    user = assign_badge(store, broadcaster, data.email, data.badgeId, actor=current_user["email"])
    return public_user(user)


@router.get("/{badge_id}")
async def get_badge(
    badge_id: str,
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(get_current_user),
):
    return badge_service(store, None).get(badge_id)


@router.put("/{badge_id}")
async def update_badge(
    badge_id: str,
    data: BadgeUpdate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    return badge_service(store, broadcaster).update(
        badge_id, data.model_dump(exclude_unset=True), actor=current_user["email"]
    )


@router.delete("/{badge_id}")
async def delete_badge(
    badge_id: str,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    if not badge_service(store, broadcaster).delete(badge_id, actor=current_user["email"]):
        raise NotFound("Badge not found")
    return {"detail": "Badge deleted successfully"}
