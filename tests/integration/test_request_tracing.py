"""Integration tests covering request ID propagation and middleware."""

from __future__ import annotations

from tests.integration.utils import auth_headers


def test_request_id_echoed_when_provided(client):
    request_id = "test-request-123"
    response = client.get("/meal-plans", headers={**auth_headers(), "X-Request-ID": request_id})
    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == request_id


def test_request_id_generated_when_missing(client):
    response = client.get("/meal-plans", headers=auth_headers())
    assert response.status_code == 200
    generated = response.headers.get("X-Request-ID")
    assert generated
    assert len(generated) >= 8


def test_error_responses_carry_request_id(client):
    response = client.get("/meal-plans/9999", headers=auth_headers())
    assert response.status_code == 404
    assert response.headers.get("X-Request-ID")
