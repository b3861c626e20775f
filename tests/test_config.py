"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

from mealweek.config import get_settings


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("MEALWEEK_RECIPE_GENERATION_DAILY_LIMIT", "-1")
    monkeypatch.setenv("MEALWEEK_GENERATION_TIMEOUT", "12.5")
    monkeypatch.setenv("MEALWEEK_LLM_PROVIDER", "ollama")
    monkeypatch.setenv("MEALWEEK_LOG_REQUESTS", "no")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.database_path == Path(tmp_path / "test_mealweek.db")
    assert settings.recipe_generation_daily_limit == -1
    assert settings.generation_timeout_seconds == 12.5
    assert settings.recipe_llm_provider == "ollama"
    assert settings.log_requests is False
    assert settings.meal_plan_creation_weekly_limit == 2


def test_unparseable_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("MEALWEEK_ARCHIVE_AFTER_DAYS", "soon")
    get_settings.cache_clear()
    assert get_settings().archive_after_days == 30
