"""Request-scoped accessors for objects the app factory puts on ``app.state``."""

from __future__ import annotations

from fastapi import Request

from taskboard.core.rate_limit import get_client_identifier
from taskboard.services.board_service import TaskBoardService


def get_board_service(request: Request) -> TaskBoardService:
    return request.app.state.board


def get_client_ip(request: Request) -> str:
    return get_client_identifier(request.headers)
