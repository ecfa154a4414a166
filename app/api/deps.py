# app/api/deps.py

from typing import Dict

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.security import decode_token
from app.core.store import CollectionStore
from app.services.auth_service import ResetCodeStore, get_user_by_email, is_locked
from app.services.broadcast import Broadcaster


# ------------------------------------------------------------
# HTTP Bearer Authentication
# ------------------------------------------------------------
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------
# Store / broadcaster / reset codes (owned by the app instance)
# ------------------------------------------------------------
def get_store(request: Request) -> CollectionStore:
    return request.app.state.store


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster


def get_reset_codes(request: Request) -> ResetCodeStore:
    return request.app.state.reset_codes


# ------------------------------------------------------------
# Resolve a token to the user as currently stored
# ------------------------------------------------------------
def user_from_token(store: CollectionStore, token: str) -> Dict:
    try:
        payload = decode_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Could not validate credentials")

    email = payload.get("sub")
    if not email:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token payload")

    # Always re-read: role, badges and locks may have changed since login
    user = get_user_by_email(store, email)
    if not user:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "User not found")

    if is_locked(user):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Account locked")

    return user


# ------------------------------------------------------------
# Get current logged-in user from JWT
# ------------------------------------------------------------
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    store: CollectionStore = Depends(get_store),
) -> Dict:
    if not credentials:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Not authenticated")
    return user_from_token(store, credentials.credentials)
