"""Input validation and sanitization for externally supplied fields.

Every function here is pure and total: it either returns a normalized value
or raises ``ValidationAppError`` naming the offending field. Nothing in this
module touches the filesystem or the network.
"""

from __future__ import annotations

import math
import re
from typing import Any, Literal, cast, get_args

from taskboard.core.errors import ValidationAppError
from taskboard.utils.clock import now_ms

Priority = Literal["P0", "P1", "P2"]

PRIORITIES: tuple[Priority, ...] = get_args(Priority)
DEFAULT_PRIORITY: Priority = "P1"

MAX_TEXT_LENGTH = 1000
MAX_NAME_LENGTH = 100
MAX_GROUP_ID_LENGTH = 100

ONE_YEAR_MS = 365 * 24 * 60 * 60 * 1000

# Control characters except tab, LF and CR
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_GROUP_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_NUMERIC_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")


def sanitize_string(value: Any, *, field: str, max_length: int = MAX_TEXT_LENGTH) -> str:
    """Trim, strip control characters and enforce length bounds.

    Args:
        value: Raw input; must be a string.
        field: Field name used in error reporting.
        max_length: Maximum allowed length after sanitization.

    Returns:
        The sanitized, non-empty string.

    Raises:
        ValidationAppError: If the value is not a string, is empty after
            sanitization, or exceeds ``max_length``.
    """
    if not isinstance(value, str):
        raise ValidationAppError.for_field(field, "must be a string")

    sanitized = _CONTROL_CHARS_RE.sub("", value).strip()

    if not sanitized:
        raise ValidationAppError.for_field(field, "cannot be empty")
    if len(sanitized) > max_length:
        raise ValidationAppError.for_field(
            field, f"cannot exceed {max_length} characters"
        )
    return sanitized


def validate_task_text(value: Any, *, field: str = "text") -> str:
    return sanitize_string(value, field=field, max_length=MAX_TEXT_LENGTH)


def validate_group_name(value: Any, *, field: str = "name") -> str:
    return sanitize_string(value, field=field, max_length=MAX_NAME_LENGTH)


def validate_uuid(value: Any, *, field: str = "id") -> str:
    """Require a canonical 8-4-4-4-12 hex UUID string (case-insensitive)."""
    if not isinstance(value, str) or not value:
        raise ValidationAppError.for_field(field, "must be a string")
    if not _UUID_RE.match(value):
        raise ValidationAppError.for_field(field, "invalid id format")
    return value


def validate_group_id(value: Any, *, field: str = "groupId") -> str:
    """Require a bounded identifier of letters, digits, hyphens and underscores."""
    if not isinstance(value, str):
        raise ValidationAppError.for_field(field, "must be a string")

    candidate = value.strip()
    if not candidate or len(candidate) > MAX_GROUP_ID_LENGTH:
        raise ValidationAppError.for_field(field, "invalid group id format")
    if not _GROUP_ID_RE.match(candidate):
        raise ValidationAppError.for_field(field, "group id contains invalid characters")
    return candidate


def validate_priority(value: Any, *, field: str = "priority") -> Priority:
    """Return one of P0/P1/P2; absent values default to the middle level, P1."""
    if value is None or value == "":
        return DEFAULT_PRIORITY
    if not isinstance(value, str) or value not in PRIORITIES:
        raise ValidationAppError.for_field(field, "must be one of P0, P1, P2")
    return cast(Priority, value)


def validate_timestamp(
    value: Any,
    *,
    field: str = "timestamp",
    now: int | None = None,
) -> int:
    """Normalize a millisecond epoch timestamp.

    Numbers and numeric strings are accepted; absent values default to ``now``.

    Args:
        value: Raw input.
        field: Field name used in error reporting.
        now: Reference time in ms; defaults to the system clock.

    Returns:
        The timestamp as an int of milliseconds.

    Raises:
        ValidationAppError: For non-numeric input, negative values, or values
            more than one year ahead of ``now``.
    """
    reference = now_ms() if now is None else now
    if value is None:
        return reference

    # bool is an int subclass; "true" is not a timestamp
    if isinstance(value, bool):
        raise ValidationAppError.for_field(field, "must be a number")

    if isinstance(value, str):
        candidate = value.strip()
        if not _NUMERIC_RE.match(candidate):
            raise ValidationAppError.for_field(field, "must be a number")
        number: float = float(candidate)
    elif isinstance(value, (int, float)):
        number = value
    else:
        raise ValidationAppError.for_field(field, "must be a number")

    if math.isnan(number) or math.isinf(number):
        raise ValidationAppError.for_field(field, "must be a finite number")
    if number < 0:
        raise ValidationAppError.for_field(field, "cannot be negative")
    if number > reference + ONE_YEAR_MS:
        raise ValidationAppError.for_field(
            field, "cannot be more than 1 year in the future"
        )
    return int(number)


def validate_boolean(value: Any, default: bool = False) -> bool:
    """Accept native booleans or "true"/"false" strings; otherwise ``default``."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return default
