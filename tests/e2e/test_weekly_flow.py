"""End-to-end flow through the default service wiring and the mock recipe gateway."""

from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient

from mealweek.db import plans as plans_repo
from mealweek.server.app import create_app
from tests.integration.utils import auth_headers


def test_plan_week_from_creation_to_shopping():
    with TestClient(create_app()) as client:
        response = client.post(
            "/meal-plans",
            json={
                "name": "Mock week",
                "start_date": "2026-03-02",
                "end_date": "2026-03-08",
                "breakfast_count": 1,
                "lunch_count": 1,
                "dinner_count": 1,
                "snack_count": 1,
                "global_preferences": {"allergies": ["peanut"]},
            },
            headers=auth_headers(),
        )
        assert response.status_code == status.HTTP_201_CREATED
        plan = response.json()
        plan_id = plan["id"]

        response = client.post(f"/meal-plans/{plan_id}/meals/generate", headers=auth_headers())
        batch = response.json()
        assert batch["succeeded"] == 4
        names = [result["recipe"]["name"] for result in batch["results"]]
        assert len(set(names)) == 4

        for slot in plan["slots"]:
            client.put(f"/meal-plans/{plan_id}/meals/{slot['id']}/lock", headers=auth_headers())
        response = client.get(f"/meal-plans/{plan_id}", headers=auth_headers())
        assert response.json()["status"] == "completed"

        response = client.post(f"/meal-plans/{plan_id}/shopping-list", headers=auth_headers())
        assert response.status_code == status.HTTP_200_OK
        ingredients = response.json()["shopping_list"]["ingredients"]
        assert ingredients
        assert not any("peanut" in item["name"] for item in ingredients)


def test_startup_recovers_interrupted_generations():
    with TestClient(create_app()) as client:
        plan = client.post(
            "/meal-plans",
            json={
                "name": "Interrupted",
                "start_date": "2026-03-02",
                "end_date": "2026-03-08",
                "dinner_count": 1,
            },
            headers=auth_headers(),
        ).json()
    plans_repo.mark_generating(plan["id"], plan["slots"][0]["id"], 1)

    with TestClient(create_app()) as client:
        response = client.get(f"/meal-plans/{plan['id']}", headers=auth_headers())
        assert response.json()["slots"][0]["status"] == "pending"
