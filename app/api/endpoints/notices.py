# app/api/endpoints/notices.py

from typing import Dict

from fastapi import APIRouter, Depends, status

from app.api.deps import get_broadcaster, get_current_user, get_store
from app.core.exceptions import NotFound
from app.core.rbac import require_content_editor
from app.core.store import CollectionStore
from app.schemas.content import NoticeCreate, NoticeUpdate
from app.services.broadcast import Broadcaster
from app.services.content_service import broadcast_notice, notice_service, visible_to

router = APIRouter(prefix="/api/notices", tags=["Notices"])


@router.get("")
async def list_notices(
    store: CollectionStore = Depends(get_store),
    current_user: Dict = Depends(get_current_user),
):
    return visible_to(notice_service(store, None).list(), current_user)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_notice(
    data: NoticeCreate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_content_editor),
):
    fields = {**data.model_dump(), "author": current_user["email"]}
    return notice_service(store, broadcaster).create(fields, actor=current_user["email"])


@router.get("/{notice_id}")
async def get_notice(
    notice_id: str,
    store: CollectionStore = Depends(get_store),
    current_user: Dict = Depends(get_current_user),
):
    notice = notice_service(store, None).get(notice_id)
    if not visible_to([notice], current_user):
        raise NotFound("Notice not found")
    return notice


@router.put("/{notice_id}")
async def update_notice(
    notice_id: str,
    data: NoticeUpdate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_content_editor),
):
    return notice_service(store, broadcaster).update(
        notice_id, data.model_dump(exclude_unset=True), actor=current_user["email"]
    )


@router.delete("/{notice_id}")
async def delete_notice(
    notice_id: str,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_content_editor),
):
    if not notice_service(store, broadcaster).delete(notice_id, actor=current_user["email"]):
        raise NotFound("Notice not found")
    return {"detail": "Notice deleted successfully"}


# -------------------------------------------------------------------
# Push an existing notice to every connected dashboard again
# -------------------------------------------------------------------
@router.post("/{notice_id}/broadcast")
async def rebroadcast_notice(
    notice_id: str,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_content_editor),
):
    return broadcast_notice(store, broadcaster, notice_id, actor=current_user["email"])
