from __future__ import annotations

from fastapi.testclient import TestClient


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None
    assert float(duration) >= 0


def test_request_id_reaches_error_bodies(client: TestClient, auth_headers: dict):
    resp = client.post(
        "/api/todos",
        json={"text": ""},
        headers={**auth_headers, "X-Request-ID": "trace-me"},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["request_id"] == "trace-me"
    assert resp.headers["X-Request-ID"] == "trace-me"
