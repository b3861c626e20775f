"""Shared pytest fixtures for the meal planner test suite."""

from __future__ import annotations

from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mealweek.config import get_settings
from mealweek.db.repository import reset_repository_state
from mealweek.planner.orchestrator import MealPlanOrchestrator
from mealweek.planner.usage import MEAL_PLAN_CREATION, RECIPE_GENERATION, UsageLimiter
from mealweek.server import deps
from mealweek.server.app import create_app
from mealweek.shopping.consolidator import IngredientConsolidator
from tests.support import ScriptedGateway

_ISOLATED_ENV = (
    "MEALWEEK_API_TOKEN",
    "MEALWEEK_LLM_BASE_URL",
    "MEALWEEK_LLM_API_KEY",
    "MEALWEEK_RECIPE_GENERATION_DAILY_LIMIT",
    "MEALWEEK_MEAL_PLAN_CREATION_WEEKLY_LIMIT",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database location."""

    db_path = tmp_path / "test_mealweek.db"
    monkeypatch.setenv("MEALWEEK_DATABASE_PATH", str(db_path))
    for key in _ISOLATED_ENV:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    reset_repository_state()
    deps.reset_default_services()
    yield
    deps.reset_default_services()
    reset_repository_state()
    monkeypatch.delenv("MEALWEEK_DATABASE_PATH", raising=False)
    get_settings.cache_clear()


@pytest.fixture()
def gateway() -> ScriptedGateway:
    return ScriptedGateway()


@pytest.fixture()
def limits() -> dict[str, int]:
    """Generous quotas so only dedicated tests run into limits."""

    return {RECIPE_GENERATION: 100, MEAL_PLAN_CREATION: 100}


@pytest.fixture()
def limiter(limits) -> UsageLimiter:
    return UsageLimiter(limits)


@pytest.fixture()
def orchestrator(gateway, limiter) -> Generator[MealPlanOrchestrator, None, None]:
    service = MealPlanOrchestrator(gateway, limiter)
    yield service
    service.close()


@pytest.fixture()
def consolidator() -> IngredientConsolidator:
    return IngredientConsolidator()


@pytest.fixture()
def app(orchestrator) -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app bound to the test orchestrator."""

    application = create_app()
    application.dependency_overrides[deps.get_orchestrator] = lambda: orchestrator
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)
