"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from mealweek.cli import app
from mealweek.config import get_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setenv("MEALWEEK_LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _invoke(*args: str):
    result = runner.invoke(app, list(args))
    return result


def _create_plan() -> dict:
    result = _invoke(
        "create-plan",
        "--name",
        "CLI week",
        "--start",
        "2026-01-05",
        "--end",
        "2026-01-11",
        "--breakfast",
        "1",
        "--dinner",
        "1",
    )
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_create_generate_lock_and_shop():
    plan = _create_plan()
    assert [slot["category"] for slot in plan["slots"]] == ["breakfast", "dinner"]

    result = _invoke("batch-generate", str(plan["id"]))
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["succeeded"] == 2

    for slot in plan["slots"]:
        result = _invoke("lock", str(plan["id"]), str(slot["id"]))
        assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["plan_status"] == "completed"

    result = _invoke("shopping-list", str(plan["id"]), "--refresh", "--text")
    assert result.exit_code == 0, result.output
    assert "0/" in result.stdout
    assert "[ ]" in result.stdout

    result = _invoke("show-plan", str(plan["id"]))
    assert json.loads(result.stdout)["next_category"] is None


def test_validation_errors_exit_non_zero():
    result = _invoke(
        "create-plan", "--name", "Empty", "--start", "2026-01-05", "--end", "2026-01-11"
    )
    assert result.exit_code == 1
    assert "At least one meal must be selected" in result.output


def test_usage_reports_both_counters():
    _create_plan()
    result = _invoke("usage")
    assert result.exit_code == 0, result.output
    counters = {entry["counter"]: entry for entry in json.loads(result.stdout)}
    assert counters["meal_plan_creation"]["used"] == 1
    assert counters["recipe_generation"]["used"] == 0


def test_nutrition_profile_set_and_show():
    result = _invoke("nutrition-profile")
    assert result.exit_code == 1

    result = _invoke("nutrition-profile", "--calories", "2100", "--goal", "lose_weight")
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["goals"] == "lose_weight"

    result = _invoke("nutrition-profile")
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["daily_calories"] == 2100


def test_nutrition_profile_rejects_unknown_goal():
    result = _invoke("nutrition-profile", "--goal", "bulk_forever")
    assert result.exit_code == 1
