"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Rate limiting is deliberately absent here: a throttled request is a normal
outcome reported through ``RateLimitResult``, not an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent across the codebase
    without forcing every error to fill every key.
    """

    hint: str
    field: str
    reason: str
    resource: str
    resource_id: str
    collection: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when externally supplied input fails validation."""

    @classmethod
    def for_field(cls, field: str, reason: str) -> "ValidationAppError":
        """Build a validation error bound to a single input field.

        Args:
            field: Name of the offending field as the client sent it.
            reason: Short human-readable explanation.

        Returns:
            ValidationAppError with ``field``/``reason`` in its details.
        """
        return cls(
            code=f"invalid_{field}",
            message=f"{field}: {reason}",
            details={"field": field, "reason": reason},
        )

    @property
    def field(self) -> str | None:
        return (self.details or {}).get("field")

    @property
    def reason(self) -> str | None:
        return (self.details or {}).get("reason")


class NotFoundAppError(AppError):
    """Raised when a referenced entity does not exist."""

    @classmethod
    def for_resource(cls, resource: str, resource_id: str) -> "NotFoundAppError":
        return cls(
            code=f"{resource}_not_found",
            message=f"{resource.capitalize()} not found",
            details={"resource": resource, "resource_id": resource_id},
        )


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class StorageAppError(AppError):
    """Base class for record store failures.

    Details may contain filesystem paths; they are logged but never sent to
    clients.
    """


class StorageUnavailableError(StorageAppError):
    """Raised when a data directory or document cannot be created, read or written."""


class StorageCorruptError(StorageAppError):
    """Raised when a stored document cannot be parsed into its collection."""


class InvalidConfigurationError(AppError):
    """Raised at startup when configuration is unusable (e.g. unsafe data dir)."""
