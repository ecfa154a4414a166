# app/api/endpoints/users.py

from typing import Dict, List

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_broadcaster, get_store
from app.core.exceptions import NotFound
from app.core.rbac import require_admin, require_staff
from app.core.store import CollectionStore
from app.schemas.user import LockRequest, UserCreate, UserRead, UserUpdate
from app.services import auth_service
from app.services.broadcast import Broadcaster

router = APIRouter(prefix="/api", tags=["Users"])


# -------------------------------------------------------------------
# Create ANY user (Admin only)
# -------------------------------------------------------------------
@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_new_user(
    data: UserCreate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin)
):
    user = auth_service.create_user(
        store,
        broadcaster,
        data.model_dump(exclude_none=True),
        actor=current_user["email"],
    )
    return auth_service.public_user(user)


# -------------------------------------------------------------------
# List / search users (Staff)
# -------------------------------------------------------------------
@router.get("/users", response_model=List[UserRead])
async def list_users(
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(require_staff)
):
    return [auth_service.public_user(u) for u in auth_service.list_users(store)]


@router.get("/search/users", response_model=List[UserRead])
async def search_users(
    q: str = Query("", description="Substring of name, email, username or role"),
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(require_staff)
):
    return [auth_service.public_user(u) for u in auth_service.search_users(store, q)]


@router.get("/users/{email}", response_model=UserRead)
async def get_user(
    email: str,
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(require_staff)
):
    user = auth_service.get_user_by_email(store, email)
    if not user:
        raise NotFound("User not found")
    return auth_service.public_user(user)


# -------------------------------------------------------------------
# Update / lock / delete (Admin only)
# -------------------------------------------------------------------
@router.put("/users/{email}", response_model=UserRead)
async def update_user(
    email: str,
    data: UserUpdate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin)
):
    user = auth_service.update_user(
        store,
        broadcaster,
        email,
        data.model_dump(exclude_unset=True),
        actor=current_user["email"],
    )
    return auth_service.public_user(user)


@router.patch("/users/{email}/lock", response_model=UserRead)
async def lock_user(
    email: str,
    data: LockRequest,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin)
):
    user = auth_service.set_lock(store, broadcaster, email, data.locked, actor=current_user["email"])
    return auth_service.public_user(user)


@router.delete("/users/{email}")
async def delete_user(
    email: str,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin)
):
    if not auth_service.delete_user(store, broadcaster, email, actor=current_user["email"]):
        raise NotFound("User not found")
    return {"detail": "User deleted successfully"}
