# app/services/attendance_service.py

import datetime
from collections import Counter
from typing import Dict, Iterable, List, Optional

from app.core.exceptions import ValidationError
from app.core.store import CollectionStore
from app.models.enums import AttendanceStatus
from app.services.audit_service import log_activity
from app.services.broadcast import Broadcaster
from app.services.collection_service import new_id, utc_now_iso

VALID_STATUSES = {s.value for s in AttendanceStatus}


def normalize_day(value) -> str:
    """Calendar day as YYYY-MM-DD; raises ValidationError for anything else."""
    if isinstance(value, datetime.datetime):
        return value.date().isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    try:
        return datetime.date.fromisoformat(str(value or "").strip()).isoformat()
    except ValueError:
        raise ValidationError(f"Invalid attendance date '{value}'")


def _status_value(status) -> Optional[str]:
    if isinstance(status, AttendanceStatus):
        return status.value
    return status


def list_attendance(
    store: CollectionStore,
    date: Optional[str] = None,
    username: Optional[str] = None,
    usernames: Optional[Iterable[str]] = None,
) -> List[Dict]:
    records = store.get("attendance")
    if date:
        date = normalize_day(date)
        records = [r for r in records if r.get("date") == date]
    if username:
        records = [r for r in records if r.get("username") == username]
    if usernames is not None:
        allowed = set(usernames)
        records = [r for r in records if r.get("username") in allowed]
    return records


def save_attendance(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    entries: Iterable[Dict],
    actor: Optional[str] = None,
) -> List[Dict]:
    """
    Upsert attendance keyed on (username, date): any stored record for the
    same pair is replaced. Entries without a status are skipped; within one
    call the last entry for a pair wins.
    """
    incoming: Dict[tuple, Dict] = {}
    for entry in entries:
        username = (entry.get("username") or "").strip()
        raw_date = entry.get("date")
        status = _status_value(entry.get("status"))

        if not username or not raw_date:
            raise ValidationError("Attendance entries need username and date")
        date = normalize_day(raw_date)
        if status is None:
            continue
        if status not in VALID_STATUSES:
            raise ValidationError(f"Invalid attendance status '{status}'")

        incoming[(username, date)] = {
            "id": new_id(),
            "username": username,
            "date": date,
            "status": status,
            "createdAt": utc_now_iso(),
        }

    if not incoming:
        return []

    records = [
        r for r in store.get("attendance")
        if (r.get("username"), r.get("date")) not in incoming
    ]
    saved = list(incoming.values())
    records.extend(saved)
    store.put("attendance", records)

    dates = sorted({r["date"] for r in saved})
    log_activity(store, broadcaster, f"Attendance saved: {len(saved)} record(s) for {', '.join(dates)}", actor)
    if broadcaster:
        broadcaster.publish("attendance:updated", {"dates": dates, "records": saved})
    return saved


def attendance_summary(store: CollectionStore, username: str) -> Dict:
    records = list_attendance(store, username=username)
    counts = Counter(r.get("status") for r in records)
    total = len(records)
    attended = counts.get(AttendanceStatus.Present.value, 0) \
        + counts.get(AttendanceStatus.Late.value, 0) \
        + counts.get(AttendanceStatus.OnDuty.value, 0)

    return {
        "username": username,
        "total": total,
        "counts": {s: counts.get(s, 0) for s in sorted(VALID_STATUSES)},
        "percentage": round(attended * 100.0 / total, 2) if total else 0.0,
    }
