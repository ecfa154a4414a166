# app/api/endpoints/attendance.py

from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_broadcaster, get_current_user, get_store
from app.core.store import CollectionStore
from app.core.rbac import require_attendance_editor
from app.models.user import UserRole
from app.schemas.content import AttendanceEntry
from app.services.attendance_service import attendance_summary, list_attendance, save_attendance
from app.services.broadcast import Broadcaster

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])


def _own_username(user: Dict) -> str:
    return user.get("username") or user["email"]


@router.get("")
async def get_attendance(
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD"),
    username: Optional[str] = Query(None),
    store: CollectionStore = Depends(get_store),
    current_user: Dict = Depends(get_current_user),
):
    day = day.isoformat() if day else None

    # Students only ever see their own rows
    if current_user.get("role") == UserRole.Student.value:
        return list_attendance(store, date=day, username=_own_username(current_user))
    return list_attendance(store, date=day, username=username)


@router.post("")
async def post_attendance(
    entries: List[AttendanceEntry],
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_attendance_editor),
):
    saved = save_attendance(
        store,
        broadcaster,
        [e.model_dump(mode="json") for e in entries],
        actor=current_user["email"],
    )
    return {"success": True, "saved": saved}


@router.get("/summary")
async def get_summary(
    username: Optional[str] = Query(None),
    store: CollectionStore = Depends(get_store),
    current_user: Dict = Depends(get_current_user),
):
    if current_user.get("role") == UserRole.Student.value or not username:
        username = _own_username(current_user)
    return attendance_summary(store, username)
