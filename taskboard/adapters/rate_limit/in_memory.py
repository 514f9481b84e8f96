"""In-memory per-client window rate limiter.

Each key owns a window that starts with its first request and ends
``window_seconds`` later; the next request after that starts a fresh window.

Notes:
- Per-process only: counters reset on restart and are never persisted.
- Thread-safe: a lock guards the entry map. ``purge_expired`` takes it per
  key, never for a whole sweep.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from taskboard.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    count: int
    reset_at: float


class InMemoryWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter keyed by client identifier.

    Important:
        Running several worker processes multiplies the effective limit; the
        application is meant to run as a single process.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of admitted requests per window.
            window_seconds: Window length in seconds.
            clock: Time source returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._state_by_key: dict[str, _WindowState] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        return len(self._state_by_key)

    def _result(self, *, allowed: bool, remaining: int, reset_at: float, now: float) -> RateLimitResult:
        retry_after = None if allowed else max(0, int(math.ceil(reset_at - now)))
        return RateLimitResult(
            allowed=allowed,
            limit=self._limit,
            remaining=remaining,
            reset_at=int(reset_at * 1000),
            retry_after_seconds=retry_after,
        )

    def consume(self, key: str) -> RateLimitResult:
        """Count a request for ``key`` and return the admission decision.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            state = self._state_by_key.get(key)

            if state is None or now > state.reset_at:
                state = _WindowState(count=1, reset_at=now + self._window_seconds)
                self._state_by_key[key] = state
                return self._result(
                    allowed=True, remaining=self._limit - 1, reset_at=state.reset_at, now=now
                )

            state.count += 1
            if state.count > self._limit:
                return self._result(allowed=False, remaining=0, reset_at=state.reset_at, now=now)

            return self._result(
                allowed=True,
                remaining=self._limit - state.count,
                reset_at=state.reset_at,
                now=now,
            )

    def purge_expired(self) -> int:
        now = self._clock()
        # Snapshot without the lock; dict.items() copy is atomic under the GIL
        candidates = [key for key, state in list(self._state_by_key.items()) if now > state.reset_at]

        removed = 0
        for key in candidates:
            with self._lock:
                state = self._state_by_key.get(key)
                # Re-check: the key may have started a new window meanwhile
                if state is not None and now > state.reset_at:
                    del self._state_by_key[key]
                    removed += 1
        return removed
