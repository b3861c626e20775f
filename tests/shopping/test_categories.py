"""Tests for unit normalization and grocery categorization."""

from __future__ import annotations

import pytest

from mealweek.models.shopping import GroceryCategory
from mealweek.shopping.categories import categorize_ingredient
from mealweek.shopping.units import normalize_unit


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("cups", "cup"),
        (" Tablespoons ", "tbsp"),
        ("tsp", "tsp"),
        ("lbs", "lb"),
        ("Grams", "g"),
        ("cloves", "clove"),
        ("cans", "can"),
        ("handful", "handful"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_unit(raw, expected):
    assert normalize_unit(raw) == expected


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Roma Tomatoes", GroceryCategory.PRODUCE),
        ("fresh ginger", GroceryCategory.PRODUCE),
        ("Greek yogurt", GroceryCategory.DAIRY),
        ("eggs", GroceryCategory.DAIRY),
        ("ground beef", GroceryCategory.MEAT),
        ("chicken thighs", GroceryCategory.POULTRY),
        ("salmon fillet", GroceryCategory.SEAFOOD),
        ("whole wheat tortilla", GroceryCategory.BAKERY),
        ("frozen waffles", GroceryCategory.FROZEN),
        ("smoked paprika", GroceryCategory.SPICES),
        ("orange juice", GroceryCategory.PRODUCE),
        ("sparkling water", GroceryCategory.BEVERAGES),
        ("quinoa", GroceryCategory.PANTRY),
    ],
)
def test_categorize_ingredient(name, expected):
    assert categorize_ingredient(name) == expected


def test_first_matching_category_wins():
    # "garlic" is a produce keyword and is checked before spices.
    assert categorize_ingredient("garlic powder") == GroceryCategory.PRODUCE
    # "butter" matches dairy before any later category.
    assert categorize_ingredient("peanut butter") == GroceryCategory.DAIRY
