from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends

from taskboard.api.dependencies import get_board_service
from taskboard.core.rate_limit import enforce_rate_limit
from taskboard.schemas.api import StatsResponse, VisitRequest
from taskboard.services.board_service import TaskBoardService

router = APIRouter(prefix="/api/stats", tags=["Stats"])

Board = Annotated[TaskBoardService, Depends(get_board_service)]


@router.get("", response_model=StatsResponse)
def get_stats(board: Board) -> StatsResponse:
    stats = board.get_stats()
    return StatsResponse(pv=stats.pv, uv=stats.uv)


@router.post("", response_model=StatsResponse, dependencies=[Depends(enforce_rate_limit)])
def record_visit(
    board: Board,
    payload: Annotated[VisitRequest | None, Body()] = None,
) -> StatsResponse:
    """Count a page view.

    With ``visitorId`` uniqueness is decided server-side; otherwise the
    client's ``isNewVisitor`` flag is trusted.
    """
    payload = payload or VisitRequest()
    if payload.visitor_id is not None:
        stats = board.record_hit(payload.visitor_id)
    else:
        stats = board.record_visit(payload.is_new_visitor)
    return StatsResponse(pv=stats.pv, uv=stats.uv)
