"""Rate limiting for the HTTP layer.

This module wires the rate limiting adapter into FastAPI.

Design goals:
- One ``RateGovernor`` per application, created in the app factory and
  reached through ``request.app.state``; no module-level limiter state.
- Two independent policies: general traffic (list and mutating endpoints)
  and password verification.
- Swap-friendly: the governor only sees ``AbstractRateLimiter``.

Client identification is best effort. Behind no trusted reverse proxy every
direct client falls into the single "unknown" bucket.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Callable, Mapping

from fastapi import HTTPException, Request, status

from taskboard.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from taskboard.adapters.rate_limit.in_memory import InMemoryWindowRateLimiter
from taskboard.core.config import AppSettings, settings
from taskboard.core.logging import hash_identifier

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

# Checked in order; the first non-empty value wins
CLIENT_IP_HEADERS: tuple[str, ...] = (
    "cf-connecting-ip",
    "x-real-ip",
    "x-forwarded-for",
    "true-client-ip",
)


def get_client_identifier(headers: Mapping[str, str]) -> str:
    """Derive the client identifier from proxy headers.

    Args:
        headers: Request headers. Starlette headers are case-insensitive;
            plain mappings must use lower-case names.

    Returns:
        The client IP as reported by the first present header, or
        ``"unknown"``.

    Examples:
        >>> get_client_identifier({"x-forwarded-for": "203.0.113.7, 10.0.0.1"})
        '203.0.113.7'
        >>> get_client_identifier({})
        'unknown'
    """
    for header in CLIENT_IP_HEADERS:
        value = headers.get(header)
        if not value:
            continue
        if header == "x-forwarded-for":
            value = value.split(",")[0]
        value = value.strip()
        if value:
            return value

    logger.debug("rate_limit.client_unidentified")
    return UNKNOWN_CLIENT


class RateGovernor:
    """Holds the general and authentication limiters for one process."""

    def __init__(self, *, general: AbstractRateLimiter, auth: AbstractRateLimiter) -> None:
        self.general = general
        self.auth = auth

    @classmethod
    def from_settings(
        cls,
        app_settings: AppSettings,
        *,
        clock: Callable[[], float] = time.time,
    ) -> "RateGovernor":
        return cls(
            general=InMemoryWindowRateLimiter(
                limit=app_settings.rate_limit_requests,
                window_seconds=app_settings.rate_limit_window_seconds,
                clock=clock,
            ),
            auth=InMemoryWindowRateLimiter(
                limit=app_settings.auth_rate_limit_requests,
                window_seconds=app_settings.auth_rate_limit_window_seconds,
                clock=clock,
            ),
        )

    def check_rate_limit(self, client_id: str) -> RateLimitResult:
        return self.general.consume(client_id)

    def check_auth_rate_limit(self, client_id: str) -> RateLimitResult:
        return self.auth.consume(client_id)

    def purge_expired(self) -> int:
        """Purge elapsed windows from both policies. Returns entries removed."""
        removed = self.general.purge_expired() + self.auth.purge_expired()
        if removed:
            logger.debug("rate_limit.purged", extra={"removed": removed})
        return removed


class RateLimitSweeper:
    """Background task that periodically purges expired limiter entries."""

    def __init__(self, governor: RateGovernor, *, interval_seconds: float) -> None:
        self._governor = governor
        self._interval = max(0.01, float(interval_seconds))
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._governor.purge_expired()
            except Exception:
                logger.exception("rate_limit.sweep_failed")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="rate-limit-sweeper")
        logger.info("rate_limit.sweeper_started", extra={"interval_s": self._interval})

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("rate_limit.sweeper_stopped")


def _app_settings(request: Request) -> AppSettings:
    cfg = getattr(request.app.state, "settings", None) or settings
    return cfg.app


def get_rate_governor(request: Request) -> RateGovernor:
    return request.app.state.rate_governor


def _raise_if_throttled(
    result: RateLimitResult, *, policy: str, client_id: str, include_headers: bool
) -> None:
    """Translate a rejected check into HTTP 429; admitted checks pass through."""

    key_hash = hash_identifier(client_id)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={"policy": policy, "key_hash": key_hash, "remaining": result.remaining},
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "policy": policy,
            "key_hash": key_hash,
            "limit": result.limit,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Too many requests. Try again in {retry_after} seconds.",
        headers=headers or None,
    )


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency applying the general policy.

    Raises:
        HTTPException: 429 Too Many Requests when the client is over budget.
    """

    app_settings = _app_settings(request)
    if not app_settings.rate_limit_enabled:
        return

    client_id = get_client_identifier(request.headers)
    result = get_rate_governor(request).check_rate_limit(client_id)
    _raise_if_throttled(
        result,
        policy="general",
        client_id=client_id,
        include_headers=app_settings.rate_limit_include_headers,
    )


async def enforce_auth_rate_limit(request: Request) -> None:
    """FastAPI dependency applying the password-attempt policy.

    Raises:
        HTTPException: 429 Too Many Requests when the client is over budget.
    """

    app_settings = _app_settings(request)
    if not app_settings.rate_limit_enabled:
        return

    client_id = get_client_identifier(request.headers)
    result = get_rate_governor(request).check_auth_rate_limit(client_id)
    _raise_if_throttled(
        result,
        policy="auth",
        client_id=client_id,
        include_headers=app_settings.rate_limit_include_headers,
    )
