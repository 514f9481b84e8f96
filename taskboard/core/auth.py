"""Shared-password authentication.

Mutating endpoints require the configured password, sent either as
``X-API-Key: <password>`` or ``Authorization: Bearer <password>``. The same
password is what ``POST /api/auth`` verifies for the login flow.

- ``verify_password`` is the pure check (no FastAPI types) used by both.
- ``verify_api_key`` is the FastAPI dependency guarding mutations.
"""

from __future__ import annotations

import hmac
import logging
from typing import Annotated

from fastapi import Header, HTTPException, Request, status

from taskboard.core.config import AppSettings, settings
from taskboard.core.errors import AuthenticationAppError
from taskboard.core.logging import hash_identifier

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_api_key(x_api_key: str | None, authorization: str | None) -> str | None:
    """Pick the credential from the supported headers.

    Examples:
        >>> extract_api_key("s3cret", None)
        's3cret'
        >>> extract_api_key(None, "Bearer s3cret")
        's3cret'
        >>> extract_api_key(None, "Basic abc") is None
        True
    """
    if x_api_key and x_api_key.strip():
        return x_api_key.strip()
    if authorization and authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        return token or None
    return None


def verify_password(provided: str, expected: str | None) -> None:
    """Compare ``provided`` with the configured password in constant time.

    Raises:
        AuthenticationAppError: If no password is configured or it does not match.
    """
    if not expected:
        logger.error("auth.not_configured")
        raise AuthenticationAppError(
            code="auth_not_configured",
            message="Authentication is enabled but no password is configured",
            details={"hint": "Set APP_AUTH_PASSWORD or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning(
            "auth.invalid_credentials",
            extra={"credential_hash": hash_identifier(provided), "credential_length": len(provided)},
        )
        raise AuthenticationAppError(code="invalid_credentials", message="Invalid password")


def _app_settings(request: Request) -> AppSettings:
    cfg = getattr(request.app.state, "settings", None) or settings
    return cfg.app


async def verify_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """FastAPI dependency guarding mutating endpoints.

    Usage:
        @router.post("/api/todos", dependencies=[Depends(verify_api_key)])

    Raises:
        HTTPException: 401 Unauthorized if the credential is missing or wrong.
    """
    app_settings = _app_settings(request)
    if not app_settings.api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return

    credential = extract_api_key(x_api_key, authorization)
    if credential is None:
        logger.warning("auth.missing_key", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Valid API key required. Provide X-API-Key or Authorization: Bearer header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        verify_password(credential, app_settings.auth_password)
    except AuthenticationAppError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    logger.info("auth.success", extra={"credential_hash": hash_identifier(credential)})
