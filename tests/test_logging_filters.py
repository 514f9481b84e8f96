"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from taskboard.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_identifier,
    set_request_id,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_credentials():
    logger, stream = _capture("test_redaction")

    logger.info(
        "auth.attempt",
        extra={
            "password": "hunter2",
            "x-api-key": "another-secret",
            "authorization": "Bearer tok-123",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "hunter2" not in output
    assert "another-secret" not in output
    assert "tok-123" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_client_identifiers_and_task_text():
    logger, stream = _capture("test_client_redaction")

    logger.info(
        "board.event",
        extra={
            "client_ip": "203.0.113.7",
            "visitor_id": "visitor-abc",
            "text": "Call the dentist",
            "task_id": "0b8e7a2c-1f44-4c1e-9d3b-5a6f7e8d9c01",
        },
    )

    output = stream.getvalue()

    assert "203.0.113.7" not in output
    assert "visitor-abc" not in output
    assert "dentist" not in output
    assert "0b8e7a2c-1f44-4c1e-9d3b-5a6f7e8d9c01" in output


def test_sensitive_filter_allows_safe_fields():
    logger, stream = _capture("test_safe_fields")

    logger.info(
        "http.request",
        extra={
            "path": "/api/todos",
            "status_code": 200,
            "duration_ms": 150.5,
        },
    )

    payload = json.loads(stream.getvalue())

    assert payload["message"] == "http.request"
    assert payload["path"] == "/api/todos"
    assert payload["status_code"] == 200
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts():
    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "X-API-Key": "secret-key",
                "user-agent": "pytest",
            },
            "safe_data": {"count": 5, "type": "test"},
        },
    )

    output = stream.getvalue()

    assert "secret-key" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output


def test_request_id_is_attached():
    logger, stream = _capture("test_request_id")

    set_request_id("req-42")
    try:
        logger.info("with_id")
    finally:
        clear_request_id()
    logger.info("without_id")

    first, second = (json.loads(line) for line in stream.getvalue().splitlines())
    assert first["request_id"] == "req-42"
    assert "request_id" not in second or second["request_id"] is None


def test_hash_identifier_is_stable_and_short():
    digest = hash_identifier("203.0.113.7")

    assert digest == hash_identifier("203.0.113.7")
    assert digest != hash_identifier("203.0.113.8")
    assert len(digest) == 16
    int(digest, 16)
