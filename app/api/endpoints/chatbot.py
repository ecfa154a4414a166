# app/api/endpoints/chatbot.py

from typing import Dict

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_broadcaster, get_current_user, get_store
from app.core.exceptions import NotFound
from app.core.permissions import is_admin
from app.core.rbac import require_admin
from app.core.store import CollectionStore
from app.models.user import UserRole
from app.schemas.content import ChatQuery, TriggerCreate, TriggerUpdate
from app.services.broadcast import Broadcaster
from app.services.chatbot_service import answer, chat_history, trigger_service

router = APIRouter(prefix="/api", tags=["Chatbot"])


# -------------------------------------------------------------------
# ASK THE CHATBOT
# -------------------------------------------------------------------
@router.post("/chatbot/query")
async def query_chatbot(
    data: ChatQuery,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(get_current_user),
):
    return answer(store, broadcaster, data.message, current_user["email"])


@router.get("/chat/history")
async def get_chat_history(
    limit: int = Query(200, ge=1, le=1000),
    store: CollectionStore = Depends(get_store),
    current_user: Dict = Depends(get_current_user),
):
    # Admins and moderators see every conversation; everyone else their own
    if is_admin(current_user) or current_user.get("role") == UserRole.Moderator.value:
        return chat_history(store, limit=limit)
    return chat_history(store, user=current_user["email"], limit=limit)


# -------------------------------------------------------------------
# TRIGGER CRUD (Admin only for writes)
# -------------------------------------------------------------------
@router.get("/chatbot")
async def list_triggers(
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(get_current_user),
):
    return trigger_service(store, None).list()


@router.post("/chatbot", status_code=status.HTTP_201_CREATED)
async def create_trigger(
    data: TriggerCreate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    return trigger_service(store, broadcaster).create(data.model_dump(mode="json"), actor=current_user["email"])


@router.get("/chatbot/{trigger_id}")
async def get_trigger(
    trigger_id: str,
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(get_current_user),
):
    return trigger_service(store, None).get(trigger_id)


@router.put("/chatbot/{trigger_id}")
async def update_trigger(
    trigger_id: str,
    data: TriggerUpdate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    return trigger_service(store, broadcaster).update(
        trigger_id, data.model_dump(mode="json", exclude_unset=True), actor=current_user["email"]
    )


@router.delete("/chatbot/{trigger_id}")
async def delete_trigger(
    trigger_id: str,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    if not trigger_service(store, broadcaster).delete(trigger_id, actor=current_user["email"]):
        raise NotFound("Chatbot trigger not found")
    return {"detail": "Chatbot trigger deleted successfully"}
