from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, status

from taskboard.api.dependencies import get_board_service
from taskboard.core.auth import verify_api_key
from taskboard.core.rate_limit import enforce_rate_limit
from taskboard.schemas.api import GroupCreateRequest, GroupDeleteResponse
from taskboard.schemas.records import Group
from taskboard.services.board_service import TaskBoardService

router = APIRouter(prefix="/api/groups", tags=["Groups"])

Board = Annotated[TaskBoardService, Depends(get_board_service)]


@router.get("", response_model=List[Group], dependencies=[Depends(enforce_rate_limit)])
def list_groups(board: Board) -> List[Group]:
    return board.list_groups()


@router.post(
    "",
    response_model=Group,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
def create_group(payload: GroupCreateRequest, board: Board) -> Group:
    return board.create_group(payload.name)


@router.delete(
    "",
    response_model=GroupDeleteResponse,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
def delete_group(
    board: Board,
    id: Annotated[str | None, Query(description="Id of the group to delete")] = None,
) -> GroupDeleteResponse:
    """Delete a group; its tasks move to the default group.

    The default group itself cannot be deleted (400).
    """
    reassigned = board.delete_group(id)
    return GroupDeleteResponse(success=True, id=id.strip(), reassigned=reassigned)
