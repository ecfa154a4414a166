# app/api/endpoints/logs.py

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_broadcaster, get_current_user, get_store
from app.core.rbac import require_moderation
from app.core.store import CollectionStore
from app.schemas.content import LogCreate
from app.services.audit_service import list_logs, log_activity
from app.services.broadcast import Broadcaster

router = APIRouter(prefix="/api/logs", tags=["Audit & Logs"])


# -------------------------------------------------------------------
# VIEW ACTIVITY LOG (newest first)
# -------------------------------------------------------------------
@router.get("")
async def get_logs(
    actor: Optional[str] = Query(None, description="Filter by actor email"),
    limit: int = Query(100, ge=1, le=1000),
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(require_moderation),
):
    return list_logs(store, limit=limit, actor=actor)


# -------------------------------------------------------------------
# CLIENT-REPORTED LOG LINE
# -------------------------------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
async def add_log(
    data: LogCreate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(get_current_user),
):
    return log_activity(store, broadcaster, data.action, current_user["email"])
