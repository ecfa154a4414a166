# app/api/endpoints/tests_admin.py

from typing import Dict

from fastapi import APIRouter, Depends, status

from app.api.deps import get_broadcaster, get_current_user, get_store
from app.core.exceptions import NotFound
from app.core.rbac import require_content_editor
from app.core.store import CollectionStore
from app.schemas.content import TestCreate, TestUpdate
from app.services.broadcast import Broadcaster
from app.services.content_service import test_service, visible_to

router = APIRouter(prefix="/api/tests", tags=["Tests"])


@router.get("")
async def list_tests(
    store: CollectionStore = Depends(get_store),
    current_user: Dict = Depends(get_current_user),
):
    return visible_to(test_service(store, None).list(), current_user)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_test(
    data: TestCreate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_content_editor),
):
    fields = {**data.model_dump(), "author": current_user["email"]}
    return test_service(store, broadcaster).create(fields, actor=current_user["email"])


@router.get("/{test_id}")
async def get_test(
    test_id: str,
    store: CollectionStore = Depends(get_store),
    current_user: Dict = Depends(get_current_user),
):
    record = test_service(store, None).get(test_id)
    if not visible_to([record], current_user):
        raise NotFound("Test not found")
    return record


@router.put("/{test_id}")
async def update_test(
    test_id: str,
    data: TestUpdate,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_content_editor),
):
    return test_service(store, broadcaster).update(
        test_id, data.model_dump(exclude_unset=True), actor=current_user["email"]
    )


@router.delete("/{test_id}")
async def delete_test(
    test_id: str,
    store: CollectionStore = Depends(get_store),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    current_user: Dict = Depends(require_content_editor),
):
    if not test_service(store, broadcaster).delete(test_id, actor=current_user["email"]):
        raise NotFound("Test not found")
    return {"detail": "Test deleted successfully"}
