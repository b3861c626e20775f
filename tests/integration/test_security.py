"""Security-related integration tests."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from mealweek.config import get_settings
from mealweek.server import deps
from mealweek.server.app import create_app

PLAN_PAYLOAD = {
    "name": "Secure week",
    "start_date": "2026-01-05",
    "end_date": "2026-01-11",
    "dinner_count": 1,
}


@pytest.fixture()
def secure_client(monkeypatch, orchestrator) -> TestClient:
    monkeypatch.setenv("MEALWEEK_API_TOKEN", "secret-token")
    get_settings.cache_clear()
    app = create_app()
    app.dependency_overrides[deps.get_orchestrator] = lambda: orchestrator
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
    monkeypatch.delenv("MEALWEEK_API_TOKEN", raising=False)
    get_settings.cache_clear()


def test_mutations_require_api_token(secure_client):
    user = {"X-User-ID": "1"}
    response = secure_client.post("/meal-plans", json=PLAN_PAYLOAD, headers=user)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    headers = {**user, "Authorization": "Bearer secret-token"}
    response = secure_client.post("/meal-plans", json=PLAN_PAYLOAD, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    plan_id = response.json()["id"]

    response = secure_client.delete(f"/meal-plans/{plan_id}", headers=user)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_api_key_header_is_accepted(secure_client):
    headers = {"X-User-ID": "1", "X-API-Key": "secret-token"}
    response = secure_client.post("/meal-plans", json=PLAN_PAYLOAD, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED


def test_reads_do_not_require_api_token(secure_client):
    response = secure_client.get("/meal-plans", headers={"X-User-ID": "1"})
    assert response.status_code == status.HTTP_200_OK
