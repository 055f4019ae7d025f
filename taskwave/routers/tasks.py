# taskwave/routers/tasks.py
# PURPOSE: per-user task CRUD; the owner always comes from the verified token.

from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..api.deps import get_task_store
from ..auth import get_current_claims
from ..models import MessageResponse, Task, TaskCreate, TaskUpdate, TokenClaims
from ..store import CollectionStore
from ..store_tasks import (
    create_task as store_create_task,
    delete_completed_tasks as store_delete_completed,
    delete_task as store_delete_task,
    list_tasks as store_list_tasks,
    update_task as store_update_task,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=List[Task])
def list_tasks(
    store: CollectionStore = Depends(get_task_store),
    claims: TokenClaims = Depends(get_current_claims),
):
    return store_list_tasks(store, owner_id=claims.id)


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    item: TaskCreate,
    response: Response,
    store: CollectionStore = Depends(get_task_store),
    claims: TokenClaims = Depends(get_current_claims),
):
    task = store_create_task(
        store, owner_id=claims.id, text=item.text, priority=item.priority, status=item.status
    )
    response.headers["Location"] = f"/api/tasks/{task['id']}"
    return task


@router.put("/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    item: TaskUpdate,
    store: CollectionStore = Depends(get_task_store),
    claims: TokenClaims = Depends(get_current_claims),
):
    # Only fields present in the body are applied
    return store_update_task(store, task_id, item.model_dump(exclude_unset=True), owner_id=claims.id)


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: str,
    store: CollectionStore = Depends(get_task_store),
    claims: TokenClaims = Depends(get_current_claims),
):
    store_delete_task(store, task_id, owner_id=claims.id)
    return MessageResponse(message="Task deleted successfully")


@router.delete("", response_model=MessageResponse)
def delete_completed(
    store: CollectionStore = Depends(get_task_store),
    claims: TokenClaims = Depends(get_current_claims),
):
    store_delete_completed(store, owner_id=claims.id)
    return MessageResponse(message="Completed tasks deleted successfully")
