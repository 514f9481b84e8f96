from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, status

from taskboard.api.dependencies import get_board_service
from taskboard.core.auth import verify_api_key
from taskboard.core.rate_limit import enforce_rate_limit
from taskboard.schemas.api import DeleteResponse, TaskCreateRequest, TaskUpdateRequest
from taskboard.schemas.records import Task
from taskboard.services.board_service import TaskBoardService

router = APIRouter(prefix="/api/todos", tags=["Todos"])

Board = Annotated[TaskBoardService, Depends(get_board_service)]


@router.get(
    "",
    response_model=List[Task],
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_rate_limit)],
)
def list_todos(board: Board) -> List[Task]:
    """List active tasks. Soft-deleted tasks are never returned."""
    return board.list_active_tasks()


@router.post(
    "",
    response_model=Task,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
def create_todo(payload: TaskCreateRequest, board: Board) -> Task:
    """Create a task.

    Raises (via the global handlers):
        400: malformed field.
        404: unknown ``groupId``.
    """
    return board.create_task(
        payload.text,
        group_id=payload.group_id,
        priority=payload.priority,
        created_at=payload.created_at,
    )


@router.put(
    "",
    response_model=Task,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
def update_todo(payload: TaskUpdateRequest, board: Board) -> Task:
    """Partially update the task whose ``id`` is in the body."""
    return board.update_task(payload.id, payload.changes())


@router.delete(
    "",
    response_model=DeleteResponse,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
def delete_todo(
    board: Board,
    id: Annotated[str | None, Query(description="UUID of the task to delete")] = None,
) -> DeleteResponse:
    """Soft-delete a task and drop its likes."""
    task = board.soft_delete_task(id)
    return DeleteResponse(success=True, id=task.id)
