# app/api/endpoints/master.py

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, status

from app.api.deps import get_broadcaster, get_current_user, get_store
from app.core.exceptions import NotFound
from app.core.rbac import require_admin
from app.core.store import CollectionStore
from app.schemas.master import (
    ExecuteRequest,
    MasterCommandCreate,
    MasterCommandRead,
    MasterCommandUpdate,
)
from app.services.broadcast import Broadcaster
from app.services.command_service import current_locks, execute_command, master_service

router = APIRouter(prefix="/api", tags=["Master Commands"])


# -------------------------------------------------------------------
# CRUD (Admin only for writes)
# -------------------------------------------------------------------
@router.get("/master", response_model=List[MasterCommandRead])
async def list_commands(
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(get_current_user),
):
    return master_service(store, None).list()


@router.post("/master", response_model=MasterCommandRead, status_code=status.HTTP_201_CREATED)
async def create_command(
    data: MasterCommandCreate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    return master_service(store, broadcaster).create(
        data.model_dump(mode="json"), actor=current_user["email"]
    )


@router.get("/master/{command_id}", response_model=MasterCommandRead)
async def get_command(
    command_id: str,
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(get_current_user),
):
    return master_service(store, None).get(command_id)


@router.put("/master/{command_id}", response_model=MasterCommandRead)
async def update_command(
    command_id: str,
    data: MasterCommandUpdate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    return master_service(store, broadcaster).update(
        command_id, data.model_dump(mode="json", exclude_unset=True), actor=current_user["email"]
    )


@router.delete("/master/{command_id}")
async def delete_command(
    command_id: str,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_admin),
):
    if not master_service(store, broadcaster).delete(command_id, actor=current_user["email"]):
        raise NotFound("Master command not found")
    return {"detail": "Master command deleted successfully"}


# -------------------------------------------------------------------
# EXECUTE (any signed-in user; the command's own permission decides)
# -------------------------------------------------------------------
@router.post("/master/{command_id}/execute")
async def execute(
    command_id: str,
    data: Optional[ExecuteRequest] = None,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(get_current_user),
):
    return execute_command(
        store, broadcaster, command_id, current_user["email"], confirm=bool(data and data.confirm)
    )


@router.get("/locks")
async def get_locks(
    store: CollectionStore = Depends(get_store),
    _: Dict = Depends(get_current_user),
):
    return current_locks(store)
