# app/services/auth_service.py

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from loguru import logger
from pydantic import EmailStr, TypeAdapter, ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import (
    AccountLocked,
    Conflict,
    InvalidCredentials,
    InvalidResetCode,
    NotFound,
    UserNotFound,
    ValidationError,
)
from app.core.security import (
    create_access_token,
    generate_reset_code,
    hash_password,
    verify_password,
)
from app.core.store import CollectionStore
from app.models.user import UserRole
from app.services.broadcast import Broadcaster
from app.services.collection_service import CollectionService, utc_now_iso

# Fields a user may change on their own profile
PROFILE_FIELDS = ("name", "username", "password")


class UserService(CollectionService):
    """Users are keyed by email; broadcasts never carry the password hash."""

    def publish(self, action: str, payload):
        if isinstance(payload, dict):
            payload = public_user(payload)
        super().publish(action, payload)


def user_service(store: CollectionStore, broadcaster: Optional[Broadcaster]) -> UserService:
    return UserService(store, broadcaster, "users", "User", event_prefix="users", key_field="email")


def public_user(user: Dict) -> Dict:
    """User record without secrets, safe to send to clients."""
    return {k: v for k, v in user.items() if k != "passwordHash"}


def parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        ts = datetime.fromisoformat(value)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def is_locked(user: Dict, now: Optional[datetime] = None) -> bool:
    if user.get("locked"):
        return True
    until = parse_ts(user.get("lockedUntil"))
    return bool(until and until > (now or datetime.now(timezone.utc)))


# ============================================================================
# FETCH USER
# ============================================================================
_email_adapter = TypeAdapter(EmailStr)


def normalize_email(email: str) -> str:
    """Same normalization EmailStr applies to request bodies (lowercased domain)."""
    try:
        return _email_adapter.validate_python((email or "").strip())
    except PydanticValidationError:
        raise ValidationError(f"Invalid email '{email}'")


def get_user_by_email(store: CollectionStore, email: str) -> Optional[Dict]:
    if not email:
        return None
    for user in store.get("users"):
        if user.get("email") == email:
            return user
    return None


def list_users(store: CollectionStore) -> List[Dict]:
    return store.get("users")


def search_users(store: CollectionStore, query: str) -> List[Dict]:
    q = (query or "").strip().lower()
    if not q:
        return list(store.get("users"))
    return [
        u for u in store.get("users")
        if any(q in str(u.get(f) or "").lower() for f in ("name", "email", "username", "role"))
    ]


# ============================================================================
# CREATE USER
# ============================================================================
def _hash_password_field(fields: Dict) -> Dict:
    fields = dict(fields)
    if "password" in fields:
        password = fields.pop("password")
        fields["passwordHash"] = hash_password(password) if password else None
    return fields


def create_user(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    fields: Dict,
    actor: Optional[str] = None,
) -> Dict:
    email = (fields.get("email") or "").strip()
    if not email:
        raise ValidationError("Email is required")

    if get_user_by_email(store, email):
        raise Conflict("User already exists")

    role = fields.get("role") or UserRole.Student.value
    if isinstance(role, UserRole):
        role = role.value

    record = {
        "email": email,
        "name": fields.get("name") or "",
        "username": fields.get("username") or email,
        "passwordHash": None,
        "role": role,
        "badges": [],
        "specialAccess": [],
        "locked": False,
        "lockedUntil": None,
        "lastLogin": None,
    }
    record.update(_hash_password_field({k: v for k, v in fields.items() if k not in ("email", "role")}))

    return user_service(store, broadcaster).create(record, actor)


# ============================================================================
# UPDATE / DELETE USER
# ============================================================================
def update_user(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    email: str,
    changes: Dict,
    actor: Optional[str] = None,
) -> Dict:
    if not get_user_by_email(store, email):
        raise NotFound("User not found")

    new_email = changes.get("email")
    if new_email is not None:
        new_email = new_email.strip()
        if not new_email:
            raise ValidationError("Email cannot be empty")
        if new_email != email and get_user_by_email(store, new_email):
            raise Conflict("Email already in use")

    if "password" in changes and not (changes["password"] or "").strip():
        raise ValidationError("Password cannot be empty")

    changes = _hash_password_field(changes)
    if isinstance(changes.get("role"), UserRole):
        changes["role"] = changes["role"].value

    return user_service(store, broadcaster).update(email, changes, actor)


def delete_user(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    email: str,
    actor: Optional[str] = None,
) -> bool:
    return user_service(store, broadcaster).delete(email, actor)


def set_lock(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    email: str,
    locked: bool,
    actor: Optional[str] = None,
) -> Dict:
    changes = {"locked": bool(locked)}
    if not locked:
        changes["lockedUntil"] = None
    return update_user(store, broadcaster, email, changes, actor)


def update_profile(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    email: str,
    changes: Dict,
) -> Dict:
    allowed = {k: v for k, v in changes.items() if k in PROFILE_FIELDS and v is not None}
    if not allowed:
        raise ValidationError("Nothing to update")
    user = update_user(store, broadcaster, email, allowed, actor=email)
    if broadcaster:
        broadcaster.publish("profiles:updated", public_user(user))
    return user


def change_password(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    user: Dict,
    old_password: str,
    new_password: str,
) -> None:
    if not verify_password(old_password, user.get("passwordHash")):
        raise ValidationError("Old password incorrect")

    if old_password == new_password:
        raise ValidationError("New password must be different")

    update_user(store, broadcaster, user["email"], {"password": new_password}, actor=user["email"])


# ============================================================================
# LOGIN
# ============================================================================
def authenticate_user(store: CollectionStore, email: str, password: str) -> Dict:
    """
    Returns the stored user on success. Distinct failures:
    UserNotFound, AccountLocked, InvalidCredentials.
    """
    user = get_user_by_email(store, email)
    if not user:
        raise UserNotFound("User not found")

    if is_locked(user):
        raise AccountLocked("Account locked")

    if not verify_password(password, user.get("passwordHash")):
        raise InvalidCredentials("Invalid credentials")

    return user


def create_login_response(store: CollectionStore, user: Dict) -> Dict:
    # Record the login without going through the audit/broadcast path
    users = list(store.get("users"))
    for idx, u in enumerate(users):
        if u.get("email") == user["email"]:
            users[idx] = {**u, "lastLogin": utc_now_iso()}
            user = users[idx]
            break
    store.put("users", users)

    token = create_access_token(subject=user["email"], data={"role": user.get("role")})

    return {
        "success": True,
        "message": "Login successful",
        "access_token": token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": public_user(user),
    }


# ============================================================================
# PASSWORD RESET (one-time codes)
# ============================================================================
@dataclass
class ResetCode:
    code: str
    expires_at: datetime


class ResetCodeStore:
    """Pending reset codes, keyed by email. Kept in memory only."""

    def __init__(self, ttl_minutes: int = 5):
        self.ttl = timedelta(minutes=ttl_minutes)
        self.codes: Dict[str, ResetCode] = {}

    def issue(self, email: str) -> ResetCode:
        record = ResetCode(code=generate_reset_code(), expires_at=datetime.now(timezone.utc) + self.ttl)
        self.codes[email] = record
        return record

    def get(self, email: str) -> Optional[ResetCode]:
        return self.codes.get(email)

    def discard(self, email: str):
        self.codes.pop(email, None)


def request_password_reset(store: CollectionStore, codes: ResetCodeStore, email: str) -> ResetCode:
    if not get_user_by_email(store, email):
        raise UserNotFound("User not found")

    record = codes.issue(email)
    logger.info(f"Reset code issued for {email}, expires {record.expires_at.isoformat()}")
    return record


def finalize_password_reset(
    store: CollectionStore,
    broadcaster: Optional[Broadcaster],
    codes: ResetCodeStore,
    email: str,
    code: str,
    new_password: str,
) -> None:
    record = codes.get(email)
    if not record:
        raise InvalidResetCode("No reset request found")

    if datetime.now(timezone.utc) > record.expires_at:
        codes.discard(email)
        raise InvalidResetCode("Code expired")

    if record.code != code:
        raise InvalidResetCode("Invalid code")

    if not get_user_by_email(store, email):
        raise UserNotFound("User not found")

    update_user(store, broadcaster, email, {"password": new_password}, actor=email)
    codes.discard(email)
