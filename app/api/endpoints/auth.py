# app/api/endpoints/auth.py

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from app.api.deps import get_broadcaster, get_reset_codes, get_store
from app.core.config import settings
from app.core.rate_limiter import limiter
from app.core.store import CollectionStore
from app.schemas.auth import (
    LoginRequest,
    ResetPasswordRequest,
    Send2FARequest,
    TokenWithUser,
)
from app.services.audit_service import log_activity
from app.services.auth_service import (
    ResetCodeStore,
    authenticate_user,
    create_login_response,
    finalize_password_reset,
    request_password_reset,
)
from app.services.broadcast import Broadcaster
from app.services.email_service import send_reset_code_email

router = APIRouter(prefix="/api", tags=["Auth"])


# -------------------------------------------------------------------
# LOGIN
# -------------------------------------------------------------------
@router.post("/login", response_model=TokenWithUser)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    # Raises UserNotFound / AccountLocked / InvalidCredentials
    user = authenticate_user(store, payload.email, payload.password)

    response = create_login_response(store, user)
    log_activity(store, broadcaster, f"Login: {user['email']}", user["email"])
    return response


# -------------------------------------------------------------------
# PUBLIC PASSWORD RESET ENDPOINTS
# -------------------------------------------------------------------
@router.post("/send-2fa", tags=["Password Reset"])
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def send_2fa(
    request: Request,
    payload: Send2FARequest,
    background_tasks: BackgroundTasks,
    store: CollectionStore = Depends(get_store),
    codes: ResetCodeStore = Depends(get_reset_codes),
):
    """
    Issues a one-time reset code and mails it. Explicitly informs if the
    user is not found.
    """
    record = request_password_reset(store, codes, payload.email)

    background_tasks.add_task(
        send_reset_code_email,
        payload.email,
        record.code,
        settings.RESET_CODE_TTL_MINUTES,
    )
    return {"sent": True, "message": "Code sent successfully. Please check your mail."}


@router.post("/reset-password", tags=["Password Reset"])
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    codes: ResetCodeStore = Depends(get_reset_codes),
):
    """
    Finalizes the password reset process by setting a new password.
    """
    finalize_password_reset(
        store,
        broadcaster,
        codes,
        payload.email,
        payload.code,
        payload.newPassword,
    )
    return {"success": True, "message": "Password updated successfully"}
