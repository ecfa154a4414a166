# app/api/endpoints/analytics.py

from typing import Dict

from fastapi import APIRouter, Depends, status

from app.api.deps import get_broadcaster, get_current_user, get_store
from app.core.rbac import require_admin
from app.core.store import CollectionStore
from app.schemas.content import AnalyticsEventCreate
from app.services.analytics_service import analytics_service, summarize
from app.services.broadcast import Broadcaster

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("")
async def list_events(
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(require_admin),
):
    return analytics_service(store, None).list()


@router.get("/summary")
async def get_summary(
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(require_admin),
):
    return summarize(store)


@router.post("", status_code=status.HTTP_201_CREATED)
async def record_event(
    data: AnalyticsEventCreate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(get_current_user),
):
    fields = {"user": current_user["email"], **data.model_dump()}
    return analytics_service(store, broadcaster).create(fields, actor=current_user["email"])
