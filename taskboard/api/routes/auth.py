from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from taskboard.core.auth import verify_password
from taskboard.core.config import settings
from taskboard.core.errors import ValidationAppError
from taskboard.core.rate_limit import enforce_auth_rate_limit
from taskboard.schemas.api import AuthRequest, AuthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("", response_model=AuthResponse, dependencies=[Depends(enforce_auth_rate_limit)])
def authenticate(payload: AuthRequest, request: Request) -> AuthResponse:
    """Check the shared password.

    Attempts are limited per client by the auth policy (5 per 15 minutes by
    default), whether they succeed or not.
    """
    if not isinstance(payload.password, str) or not payload.password:
        raise ValidationAppError.for_field("password", "is required")

    cfg = getattr(request.app.state, "settings", None) or settings
    verify_password(payload.password, cfg.app.auth_password)
    logger.info("auth.login_succeeded")
    return AuthResponse(success=True, message="Authenticated")
