# app/services/command_service.py

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from loguru import logger
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import AuthError, PermissionDenied, ValidationError
from app.core.permissions import authorize
from app.core.store import CollectionStore
from app.models.user import UserRole
from app.schemas.master import (
    AssignBadgeAllAction,
    CommandAction,
    DeleteLastTestAction,
    LockAllAction,
    MarkAttendanceAllAction,
    NotifyAction,
    RestoreLastTestAction,
    UnlockAllAction,
)
from app.services.attendance_service import save_attendance
from app.services.audit_service import log_activity
from app.services.auth_service import get_user_by_email, parse_ts, public_user
from app.services.badge_service import assign_badge
from app.services.broadcast import Broadcaster
from app.services.collection_service import CollectionService, utc_now_iso

action_adapter = TypeAdapter(CommandAction)

DEFAULT_COMMANDS = [
    {"name": "Lock All Temporary", "action": {"kind": "lock_all", "durationSeconds": 60},
     "permission": "admin", "dangerous": False},
    {"name": "Lock All Permanent", "action": {"kind": "lock_all", "durationSeconds": 0, "permanent": True},
     "permission": "admin", "dangerous": True},
    {"name": "Delete Last Test", "action": {"kind": "delete_last_test"},
     "permission": "admin", "dangerous": False},
    {"name": "Restore Last Deleted Test", "action": {"kind": "restore_last_test"},
     "permission": "admin", "dangerous": False},
]


def master_service(store: CollectionStore, broadcaster: Optional[Broadcaster]) -> CollectionService:
    return CollectionService(store, broadcaster, "master_commands", "Master command", event_prefix="master")


def parse_action(raw) -> CommandAction:
    try:
        return action_adapter.validate_python(raw)
    except PydanticValidationError:
        raise ValidationError("Unsupported command action")


def seed_default_commands(store: CollectionStore) -> int:
    if store.get("master_commands"):
        return 0
    service = master_service(store, None)
    for command in DEFAULT_COMMANDS:
        service.create(command, actor="system")
    logger.info(f"Seeded {len(DEFAULT_COMMANDS)} default master commands")
    return len(DEFAULT_COMMANDS)


# ============================================================================
# GLOBAL LOCK STATE
# ============================================================================
def current_locks(store: CollectionStore) -> Dict:
    locks = {"active": False, "permanent": False, "unlockTime": None, **store.get("locks")}
    if locks["active"] and not locks["permanent"]:
        until = parse_ts(locks.get("unlockTime"))
        if until and until <= datetime.now(timezone.utc):
            locks.update({"active": False, "unlockTime": None})
    return locks


def _set_locks(store, broadcaster, locks: Dict) -> Dict:
    store.put("locks", locks)
    if broadcaster:
        broadcaster.publish("locks:updated", locks)
    return locks


# ============================================================================
# WARNINGS / TEMPORARY LOCK
# ============================================================================
def record_denied_attempt(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    actor: Dict,
    command: Dict,
) -> int:
    email = actor["email"]
    warnings = dict(store.get("warnings"))
    attempts = int(warnings.get(email, 0)) + 1
    warnings[email] = attempts
    store.put("warnings", warnings)

    log_activity(
        store, broadcaster,
        f"Access denied for master command: {command.get('name')} (warning {attempts}/{settings.MAX_COMMAND_WARNINGS})",
        email,
    )

    if attempts > settings.MAX_COMMAND_WARNINGS:
        seconds = attempts * 10
        until = (datetime.now(timezone.utc) + timedelta(seconds=seconds)).isoformat()
        users = list(store.get("users"))
        for idx, u in enumerate(users):
            if u.get("email") == email:
                users[idx] = {**u, "lockedUntil": until}
                store.put("users", users)
                if broadcaster:
                    broadcaster.publish("users:updated", public_user(users[idx]))
                break
        log_activity(store, broadcaster, f"{email} locked for {seconds} seconds due to misuse", "system")

    return attempts


# ============================================================================
# DISPATCHER
# ============================================================================
def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def dispatch(store: CollectionStore, broadcaster: Optional[Broadcaster], action: CommandAction, actor_email: str):
    if isinstance(action, LockAllAction):
        unlock_time = None
        if not action.permanent:
            unlock_time = (datetime.now(timezone.utc) + timedelta(seconds=action.durationSeconds)).isoformat()
        return _set_locks(store, broadcaster, {
            "active": True,
            "permanent": action.permanent,
            "unlockTime": unlock_time,
            "lockedBy": actor_email,
        })

    if isinstance(action, UnlockAllAction):
        return _set_locks(store, broadcaster, {"active": False, "permanent": False, "unlockTime": None})

    if isinstance(action, NotifyAction):
        payload = {"message": action.message, "level": action.level, "from": actor_email}
        if broadcaster:
            broadcaster.publish("notify", payload)
        return payload

    if isinstance(action, DeleteLastTestAction):
        tests = list(store.get("tests"))
        if not tests:
            return {"deleted": None}
        removed = tests.pop()
        store.put("tests", tests)
        store.put("trash", list(store.get("trash")) + [removed])
        if broadcaster:
            broadcaster.publish("tests:deleted", {"id": removed.get("id")})
        return {"deleted": removed}

    if isinstance(action, RestoreLastTestAction):
        trash = list(store.get("trash"))
        if not trash:
            return {"restored": None}
        restored = trash.pop()
        store.put("trash", trash)
        store.put("tests", list(store.get("tests")) + [restored])
        if broadcaster:
            broadcaster.publish("tests:created", restored)
        return {"restored": restored}

    if isinstance(action, AssignBadgeAllAction):
        targets = [u["email"] for u in store.get("users") if u.get("role") == action.role.value]
        for email in targets:
            assign_badge(store, broadcaster, email, action.badgeId, actor=actor_email)
        return {"assigned": targets}

    if isinstance(action, MarkAttendanceAllAction):
        date = action.date.isoformat() if action.date else _today()
        entries = [
            {"username": u.get("username") or u["email"], "date": date, "status": action.status.value}
            for u in store.get("users")
            if u.get("role") == UserRole.Student.value
        ]
        saved = save_attendance(store, broadcaster, entries, actor=actor_email)
        return {"date": date, "saved": len(saved)}

    raise ValidationError("Unsupported command action")


# ============================================================================
# EXECUTE
# ============================================================================
def execute_command(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    command_id: str,
    actor_email: str,
    confirm: bool = False,
) -> Dict:
    command = master_service(store, broadcaster).get(command_id)

    # Permissions are read from the stored user right now, not from the token
    actor = get_user_by_email(store, actor_email)
    if not actor:
        raise AuthError("User not found")

    if not authorize(actor, command.get("permission")):
        attempts = record_denied_attempt(store, broadcaster, actor, command)
        raise PermissionDenied(f"Access denied! Warning {attempts}/{settings.MAX_COMMAND_WARNINGS}")

    if command.get("dangerous") and not confirm:
        raise ValidationError("This command is marked dangerous; resend with confirm=true")

    action = parse_action(command.get("action"))
    result = dispatch(store, broadcaster, action, actor_email)

    log_activity(store, broadcaster, f"Executed master command: {command.get('name')} by {actor_email}", actor_email)

    event = {
        "id": command["id"],
        "name": command.get("name"),
        "actor": actor_email,
        "action": action.model_dump(mode="json"),
        "result": result,
        "executedAt": utc_now_iso(),
    }
    if broadcaster:
        broadcaster.publish("master:execute", event)
    return event
