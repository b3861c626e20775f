"""Tests for recipe name variety scoring."""

from __future__ import annotations

from mealweek.llm.variety import score_variety


def test_no_history_is_fully_varied():
    assert score_variety("Chicken Stir Fry", []) == 1.0
    assert score_variety("Chicken Stir Fry", ["", "  "]) == 1.0


def test_repeat_scores_zero():
    assert score_variety("Chicken Stir Fry", ["chicken stir fry"]) == 0.0


def test_similar_names_score_lower_than_different_ones():
    history = ["Chicken Stir Fry", "Overnight Oats"]
    near = score_variety("Spicy Chicken Stir Fry", history)
    far = score_variety("Garlic Butter Salmon", history)
    assert 0.0 <= near < far <= 1.0
