"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before anything imports ``taskboard.core.config``,
which builds the global settings at import time.
"""

import os
import tempfile

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_AUTH_PASSWORD", "test-password-123")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("STORAGE_DATA_DIR", os.path.join(tempfile.gettempdir(), "taskboard-tests"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from taskboard.adapters.storage.json_file import JsonFileRecordStore
from taskboard.core.app_factory import create_app
from taskboard.core.config import AppSettings, LogSettings, Settings, StorageSettings
from taskboard.services.board_service import TaskBoardService
from taskboard.utils.clock import Clock

TEST_PASSWORD = "test-password-123"
START_MS = 1_700_000_000_000


class ManualClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = START_MS) -> None:
        self.current = start_ms

    def __call__(self) -> int:
        return self.current

    def advance(self, ms: int) -> None:
        self.current += ms


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def store(data_dir) -> JsonFileRecordStore:
    return JsonFileRecordStore(data_dir)


@pytest.fixture
def board(store, manual_clock) -> TaskBoardService:
    return TaskBoardService(store, clock=Clock(time_ms=manual_clock))


@pytest.fixture
def make_settings(data_dir):
    """Build isolated settings; keyword arguments override ``AppSettings`` fields."""

    def _make(**app_overrides) -> Settings:
        app_kwargs = {"auth_password": TEST_PASSWORD, "api_key_required": True}
        app_kwargs.update(app_overrides)
        return Settings(
            app=AppSettings(**app_kwargs),
            storage=StorageSettings(data_dir=str(data_dir)),
            log=LogSettings(level="WARNING"),
        )

    return _make


@pytest.fixture
def client(make_settings):
    app = create_app(make_settings())
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict:
    return {"X-API-Key": TEST_PASSWORD}
