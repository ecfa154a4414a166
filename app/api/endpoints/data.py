# app/api/endpoints/data.py

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_broadcaster, get_store
from app.core.rbac import require_admin, require_moderation
from app.core.store import CollectionStore
from app.schemas.content import NotifyRequest
from app.services.audit_service import log_activity
from app.services.broadcast import Broadcaster
from app.services.data_service import export_all, import_all

router = APIRouter(prefix="/api", tags=["Data"])


# -------------------------------------------------------------------
# FULL EXPORT / IMPORT (Admin only)
# -------------------------------------------------------------------
@router.get("/export")
async def export_data(
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(require_admin),
):
    return export_all(store)


@router.post("/import")
async def import_data(
    data: Dict[str, Any] = Body(...),
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    imported = import_all(store, broadcaster, data, actor=current_user["email"])
    return {"success": True, "imported": imported}


# -------------------------------------------------------------------
# FREE-FORM NOTIFICATION TO EVERY DASHBOARD
# -------------------------------------------------------------------
@router.post("/notify")
async def notify(
    data: NotifyRequest,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_moderation),
):
    payload = {**data.model_dump(), "from": current_user["email"]}
    delivered = broadcaster.publish("notify", payload)
    log_activity(store, broadcaster, f"Notification sent: {data.message}", current_user["email"])
    return {"success": True, "delivered": delivered}
