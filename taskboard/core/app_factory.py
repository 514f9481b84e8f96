"""Application factory for the FastAPI app.

Everything with process lifetime (record store, board service, rate
governor and its sweeper) is built here and hung on ``app.state``, so tests
can create as many isolated apps as they need.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskboard.adapters.storage.base import AbstractRecordStore
from taskboard.adapters.storage.json_file import JsonFileRecordStore
from taskboard.api.routes import (
    auth_router,
    groups_router,
    health_router,
    likes_router,
    stats_router,
    todos_router,
)
from taskboard.core.config import Settings, settings
from taskboard.core.exception_handlers import setup_exception_handlers
from taskboard.core.logging import configure_logging
from taskboard.core.middleware import request_id_middleware
from taskboard.core.openapi import apply_openapi_customizations
from taskboard.core.paths import parse_prefixes, validate_data_dir
from taskboard.core.rate_limit import RateGovernor, RateLimitSweeper
from taskboard.services.board_service import TaskBoardService

logger = logging.getLogger(__name__)


def _cors_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app(
    config: Settings | None = None,
    *,
    store: AbstractRecordStore | None = None,
    governor: RateGovernor | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        config: Settings to use; defaults to the process-wide ``settings``.
        store: Record store override; defaults to JSON files under
            ``config.storage.data_dir``.
        governor: Rate governor override; defaults to one built from
            ``config.app``.

    Returns:
        Configured FastAPI app.

    Raises:
        InvalidConfigurationError: If the data directory is unsafe or outside
            the allowed prefixes. The app must not start in that case.
    """
    cfg = config or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    if store is None:
        data_dir = validate_data_dir(
            cfg.storage.data_dir,
            allowed_prefixes=parse_prefixes(cfg.storage.allowed_prefixes) or None,
        )
        store = JsonFileRecordStore(data_dir)

    governor = governor or RateGovernor.from_settings(cfg.app)
    sweeper = RateLimitSweeper(
        governor, interval_seconds=cfg.app.rate_limit_cleanup_interval_seconds
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper.start()
        try:
            yield
        finally:
            await sweeper.stop()

    app = FastAPI(
        title="Taskboard API",
        description=(
            "Task tracking backend: tasks organized into groups, per-client likes, "
            "visit counters and shared-password authentication. Mutations require "
            "X-API-Key; all client traffic is rate limited per IP."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = cfg
    app.state.board = TaskBoardService(store)
    app.state.rate_governor = governor
    app.state.rate_limit_sweeper = sweeper

    # Middleware
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(cfg.app.cors_allow_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(todos_router)
    app.include_router(groups_router)
    app.include_router(likes_router)
    app.include_router(stats_router)
    app.include_router(auth_router)

    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={
            "app_env": cfg.app_env,
            "rate_limit_enabled": cfg.app.rate_limit_enabled,
            "api_key_required": cfg.app.api_key_required,
        },
    )
    return app
