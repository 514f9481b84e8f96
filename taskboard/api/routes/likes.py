from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from taskboard.api.dependencies import get_board_service, get_client_ip
from taskboard.core.rate_limit import enforce_rate_limit
from taskboard.schemas.api import LikedTasksResponse, LikeToggleRequest, LikeToggleResponse
from taskboard.services.board_service import TaskBoardService

router = APIRouter(prefix="/api/likes", tags=["Likes"], dependencies=[Depends(enforce_rate_limit)])

Board = Annotated[TaskBoardService, Depends(get_board_service)]
ClientIp = Annotated[str, Depends(get_client_ip)]


@router.get("", response_model=LikedTasksResponse)
def liked_todos(board: Board, client_ip: ClientIp) -> LikedTasksResponse:
    """Ids of the tasks the calling client has liked."""
    return LikedTasksResponse(liked_todo_ids=board.liked_task_ids(client_ip))


@router.post("", response_model=LikeToggleResponse)
def toggle_like(payload: LikeToggleRequest, board: Board, client_ip: ClientIp) -> LikeToggleResponse:
    """Like the task for the calling client, or take the like back."""
    return board.toggle_like(payload.todo_id, client_ip)
