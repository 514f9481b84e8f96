"""Unit tests for shared-password authentication."""

from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from taskboard.core.auth import extract_api_key, verify_api_key, verify_password
from taskboard.core.errors import AuthenticationAppError


def _request(**app_settings) -> SimpleNamespace:
    app_cfg = SimpleNamespace(**{"api_key_required": True, "auth_password": "s3cret", **app_settings})
    state = SimpleNamespace(settings=SimpleNamespace(app=app_cfg))
    return SimpleNamespace(app=SimpleNamespace(state=state), url=SimpleNamespace(path="/api/todos"))


class TestExtractAPIKey:
    """Credential lookup across the supported headers."""

    def test_x_api_key_wins(self) -> None:
        assert extract_api_key("from-header", "Bearer from-bearer") == "from-header"

    def test_bearer_token(self) -> None:
        assert extract_api_key(None, "Bearer  token-123 ") == "token-123"

    @pytest.mark.parametrize(
        ("x_api_key", "authorization"),
        [(None, None), ("", None), ("   ", None), (None, "Basic abc"), (None, "Bearer "), (None, "bearer abc")],
    )
    def test_missing_credential(self, x_api_key, authorization) -> None:
        assert extract_api_key(x_api_key, authorization) is None


class TestVerifyPassword:
    """Core password check."""

    def test_accepts_matching_password(self) -> None:
        verify_password("s3cret", "s3cret")

    def test_rejects_wrong_password(self) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            verify_password("guess", "s3cret")

        assert exc_info.value.code == "invalid_credentials"

    def test_rejects_prefix_of_password(self) -> None:
        with pytest.raises(AuthenticationAppError):
            verify_password("s3c", "s3cret")

    @pytest.mark.parametrize("expected", [None, ""])
    def test_not_configured(self, expected) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            verify_password("anything", expected)

        assert exc_info.value.code == "auth_not_configured"
        assert "APP_AUTH_PASSWORD" in exc_info.value.details["hint"]


class TestVerifyAPIKeyDependency:
    """FastAPI dependency guarding mutations."""

    @pytest.mark.asyncio
    async def test_bypassed_when_auth_disabled(self) -> None:
        await verify_api_key(_request(api_key_required=False), x_api_key=None, authorization=None)

    @pytest.mark.asyncio
    async def test_missing_credential_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(_request(), x_api_key=None, authorization=None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    @pytest.mark.asyncio
    async def test_wrong_credential_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(_request(), x_api_key="wrong", authorization=None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid password"

    @pytest.mark.asyncio
    async def test_accepts_header_or_bearer(self) -> None:
        await verify_api_key(_request(), x_api_key="s3cret", authorization=None)
        await verify_api_key(_request(), x_api_key=None, authorization="Bearer s3cret")

    @pytest.mark.asyncio
    async def test_unconfigured_password_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await verify_api_key(_request(auth_password=None), x_api_key="s3cret", authorization=None)

        assert exc_info.value.status_code == 401
        assert "no password is configured" in exc_info.value.detail
