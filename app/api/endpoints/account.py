# app/api/endpoints/account.py
from typing import Dict

from fastapi import APIRouter, Depends

from app.api.deps import get_broadcaster, get_current_user, get_store
from app.core.store import CollectionStore
from app.schemas.auth import ChangePasswordRequest
from app.schemas.user import ProfileUpdate, UserRead
from app.services import auth_service
from app.services.broadcast import Broadcaster

router = APIRouter(prefix="/api", tags=["Account"])


@router.get("/profiles/me", response_model=UserRead)
async def read_profile(current_user: Dict = Depends(get_current_user)):
    return auth_service.public_user(current_user)


@router.put("/profiles/me", response_model=UserRead)
async def update_profile(
    payload: ProfileUpdate,
    current_user: Dict = Depends(get_current_user),
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    user = auth_service.update_profile(
        store, broadcaster, current_user["email"], payload.model_dump(exclude_none=True)
    )
    return auth_service.public_user(user)


@router.post("/account/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    current_user: Dict = Depends(get_current_user),
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    auth_service.change_password(
        store, broadcaster, current_user, payload.old_password, payload.new_password
    )
    return {"detail": "Password changed successfully"}
