"""Tests for usage counter persistence."""

from __future__ import annotations

from datetime import date

from mealweek.db import usage as usage_repo

PERIOD = date(2026, 1, 5)


def test_increment_with_ceiling_stops_at_ceiling():
    assert usage_repo.increment_with_ceiling(1, "recipe_generation", PERIOD, 2)
    assert usage_repo.increment_with_ceiling(1, "recipe_generation", PERIOD, 2)
    assert not usage_repo.increment_with_ceiling(1, "recipe_generation", PERIOD, 2)
    assert usage_repo.get_count(1, "recipe_generation", PERIOD) == 2


def test_counters_are_keyed_by_user_counter_and_period():
    usage_repo.increment_with_ceiling(1, "recipe_generation", PERIOD, None)
    usage_repo.increment_with_ceiling(1, "meal_plan_creation", PERIOD, None)
    usage_repo.increment_with_ceiling(2, "recipe_generation", PERIOD, None)
    usage_repo.increment_with_ceiling(1, "recipe_generation", date(2026, 1, 6), None)

    assert usage_repo.get_count(1, "recipe_generation", PERIOD) == 1
    assert usage_repo.get_count(1, "meal_plan_creation", PERIOD) == 1
    assert usage_repo.get_count(2, "recipe_generation", PERIOD) == 1
    assert usage_repo.get_count(3, "recipe_generation", PERIOD) == 0


def test_unlimited_and_zero_ceilings():
    for _ in range(3):
        assert usage_repo.increment_with_ceiling(1, "recipe_generation", PERIOD, None)
    assert usage_repo.get_count(1, "recipe_generation", PERIOD) == 3

    assert not usage_repo.increment_with_ceiling(2, "recipe_generation", PERIOD, 0)
    assert usage_repo.get_count(2, "recipe_generation", PERIOD) == 0
