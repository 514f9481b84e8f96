"""Rate limiter interfaces.

Routes depend on this abstraction (not the concrete implementation) so the
in-process store can be swapped later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of an admission check.

    A rejection is an ordinary result, not an error.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: UNIX epoch milliseconds when the client's window ends.
        retry_after_seconds: Suggested wait in whole seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for per-key rate limiters."""

    @property
    @abstractmethod
    def limit(self) -> int:
        """Max requests admitted per window."""

    @property
    @abstractmethod
    def window_seconds(self) -> int:
        """Window length in seconds."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and decide whether to admit it.

        Args:
            key: Client identifier (IP or the "unknown" bucket).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def purge_expired(self) -> int:
        """Drop entries whose window has elapsed.

        Returns:
            Number of entries removed.
        """
        raise NotImplementedError
