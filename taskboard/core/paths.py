"""Data directory validation.

Runs once while the application is being built. A directory that fails any
check aborts startup with ``InvalidConfigurationError``; requests never
re-validate the path.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path, PurePath
from typing import Iterable

from taskboard.core.errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_PREFIXES: tuple[str, ...] = ("/data", "/app/data", "/var/lib")


def parse_prefixes(prefixes: str | None) -> list[str]:
    """Split a comma-separated prefix list, dropping blanks.

    Examples:
        >>> parse_prefixes("/data, /srv/taskboard ,")
        ['/data', '/srv/taskboard']
        >>> parse_prefixes(None)
        []
    """
    if not prefixes:
        return []
    return [p.strip() for p in prefixes.split(",") if p.strip()]


def default_allowed_prefixes() -> list[str]:
    return [os.getcwd(), tempfile.gettempdir(), *DEFAULT_ALLOWED_PREFIXES]


def _reject(raw: str, reason: str) -> InvalidConfigurationError:
    logger.error(
        "storage.data_dir_rejected",
        extra={"data_dir": raw, "reason": reason},
    )
    return InvalidConfigurationError(
        code="invalid_data_dir",
        message=f"Configured data directory is not allowed: {reason}",
        details={"reason": reason, "hint": "Set STORAGE_DATA_DIR / STORAGE_ALLOWED_PREFIXES"},
    )


def _is_within(path: Path, prefix: Path) -> bool:
    return path == prefix or prefix in path.parents


def validate_data_dir(
    raw: str,
    *,
    allowed_prefixes: Iterable[str] | None = None,
    enforce_prefixes: bool | None = None,
) -> Path:
    """Validate and normalize the configured data directory.

    Args:
        raw: Directory as configured (relative or absolute).
        allowed_prefixes: Directories the data dir must live under. Defaults
            to ``default_allowed_prefixes()``.
        enforce_prefixes: Force the allow-list check on or off. By default it
            runs on POSIX systems only.

    Returns:
        Absolute, normalized directory path. The directory itself is not
        created here; the record store does that on first use.

    Raises:
        InvalidConfigurationError: If the path is empty, contains NUL bytes,
            escapes upwards after normalization, or falls outside the
            allow-list.
    """
    if not raw or not raw.strip():
        raise _reject(raw, "empty path")
    if "\x00" in raw:
        raise _reject(raw, "path contains NUL byte")

    normalized = os.path.normpath(raw.strip())
    if ".." in PurePath(normalized).parts:
        raise _reject(raw, "path escapes its parent directory")

    absolute = Path(os.path.abspath(normalized))

    if enforce_prefixes is None:
        enforce_prefixes = os.name == "posix"

    if enforce_prefixes:
        prefixes = list(allowed_prefixes) if allowed_prefixes is not None else default_allowed_prefixes()
        resolved_target = absolute.resolve()
        allowed = any(
            _is_within(resolved_target, Path(os.path.abspath(p)).resolve())
            for p in prefixes
        )
        if not allowed:
            raise _reject(raw, "path is outside the allowed prefixes")

    logger.info("storage.data_dir_validated", extra={"data_dir": str(absolute)})
    return absolute
