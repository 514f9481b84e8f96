"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from taskboard.core.errors import (
    AppError,
    AuthenticationAppError,
    NotFoundAppError,
    StorageCorruptError,
    StorageUnavailableError,
    ValidationAppError,
)
from taskboard.core.exception_handlers import (
    STORAGE_ERROR_MESSAGE,
    general_exception_handler,
    setup_exception_handlers,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400_with_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError.for_field("text", "cannot be empty")

        response = client.get("/test-validation")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_text"
        assert error["message"] == "text: cannot be empty"
        assert error["details"] == {"field": "text", "reason": "cannot be empty"}
        assert "request_id" in error

    def test_authentication_error_returns_401(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-auth")
        async def test_endpoint():
            raise AuthenticationAppError(code="invalid_credentials", message="Invalid password")

        response = client.get("/test-auth")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "invalid_credentials"

    def test_not_found_returns_404(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-missing")
        async def test_endpoint():
            raise NotFoundAppError.for_resource("task", "abc")

        response = client.get("/test-missing")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "task_not_found"
        assert error["details"] == {"resource": "task", "resource_id": "abc"}

    @pytest.mark.parametrize("error_cls", [StorageUnavailableError, StorageCorruptError])
    def test_storage_errors_are_generic_500(self, client: TestClient, app_with_handlers: FastAPI, error_cls):
        @app_with_handlers.get("/test-storage")
        async def test_endpoint():
            raise error_cls(
                code="storage_corrupt",
                message="todos.json could not be parsed",
                details={"collection": "todos.json", "context": {"path": "/srv/secret/todos.json"}},
            )

        response = client.get("/test-storage")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "storage_error"
        assert error["message"] == STORAGE_ERROR_MESSAGE
        assert "details" not in error
        assert "/srv/secret" not in response.text

    def test_plain_app_error_defaults_to_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-plain")
        async def test_endpoint():
            raise AppError(code="test", message="test")

        response = client.get("/test-plain")
        data = response.json()

        assert response.status_code == 400
        assert set(data["error"]) == {"code", "message", "request_id"}


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("Unexpected error: disk quota exceeded on /srv/data")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "disk quota" not in data["error"]["message"]
        assert "request_id" in data["error"]

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        assert "Traceback" not in response_text
        assert "File \"" not in response_text
        assert "ValueError" not in response_text


class TestErrorHandlerIntegration:
    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
