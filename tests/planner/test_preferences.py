"""Tests for layered preference resolution."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from mealweek.models.plan import Difficulty, MealPreferences
from mealweek.planner.preferences import resolve_preferences


def test_highest_layer_wins_per_field():
    request = MealPreferences(max_prep_time=15)
    slot = MealPreferences(allergies=["peanut"], max_prep_time=30)
    plan = MealPreferences(
        allergies=["shellfish"],
        cuisine_preferences=["thai"],
        difficulty_level=Difficulty.MEDIUM,
    )

    resolved = resolve_preferences(request, slot, plan)

    assert resolved.max_prep_time == 15
    assert resolved.allergies == ["peanut"]
    assert resolved.cuisine_preferences == ["thai"]
    assert resolved.difficulty_level == Difficulty.MEDIUM
    assert resolved.max_cook_time is None


def test_empty_list_and_zero_are_explicit_choices():
    request = MealPreferences(allergies=[], max_cook_time=0)
    plan = MealPreferences(allergies=["egg"], max_cook_time=45)

    resolved = resolve_preferences(request, None, plan)

    assert resolved.allergies == []
    assert resolved.max_cook_time == 0


def test_no_layers_resolve_to_empty_preferences():
    assert resolve_preferences(None, None, None) == MealPreferences()


@pytest.mark.parametrize(
    "field,value",
    [("max_prep_time", 181), ("max_prep_time", -1), ("max_cook_time", 481), ("difficulty_level", "expert")],
)
def test_preference_bounds_are_validated(field, value):
    with pytest.raises(PydanticValidationError):
        MealPreferences(**{field: value})
