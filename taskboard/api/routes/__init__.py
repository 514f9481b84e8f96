from __future__ import annotations

from taskboard.api.routes.auth import router as auth_router
from taskboard.api.routes.groups import router as groups_router
from taskboard.api.routes.health import router as health_router
from taskboard.api.routes.likes import router as likes_router
from taskboard.api.routes.stats import router as stats_router
from taskboard.api.routes.todos import router as todos_router

__all__ = [
    "auth_router",
    "groups_router",
    "health_router",
    "likes_router",
    "stats_router",
    "todos_router",
]
