"""Tests for shopping list consolidation."""

from __future__ import annotations

from datetime import datetime

import pytest

from mealweek.errors import NoGeneratedMeals, NotFound
from mealweek.models.recipe import Recipe
from mealweek.models.shopping import GroceryCategory
from mealweek.shopping.consolidator import (
    IngredientConsolidator,
    calculate_stats,
    consolidate_ingredients,
    format_ingredient,
    format_quantity,
    group_by_category,
)
from tests.support import make_recipe, make_result, plan_request


def _stored_recipe(recipe_id: int, name: str, ingredients: list[dict]) -> Recipe:
    generated = make_recipe(name, ingredients=ingredients)
    return Recipe.model_validate(
        {
            **generated.model_dump(),
            "id": recipe_id,
            "user_id": 1,
            "created_at": datetime(2026, 1, 5, 12, 0, 0),
        }
    )


def test_merges_same_name_and_unit_across_recipes():
    recipes = [
        _stored_recipe(1, "r1", [{"name": "Tomato", "quantity": 1, "unit": "cups"}]),
        _stored_recipe(2, "r2", [{"name": "tomato", "quantity": 0.5, "unit": "cup"}]),
    ]

    [tomato] = consolidate_ingredients(recipes)

    assert tomato.name == "Tomato"
    assert tomato.quantity == pytest.approx(1.5)
    assert tomato.unit == "cup"
    assert tomato.category == GroceryCategory.PRODUCE
    assert tomato.recipe_names == ["r1", "r2"]
    assert tomato.recipe_ids == [1, 2]
    assert not tomato.checked


def test_different_units_stay_separate_and_sorted_by_name():
    recipes = [
        _stored_recipe(
            1,
            "Curry",
            [
                {"name": "rice", "quantity": 200, "unit": "grams"},
                {"name": "Coconut milk", "quantity": 1, "unit": "can"},
                {"name": "rice", "quantity": 1, "unit": "cup"},
            ],
        ),
        _stored_recipe(
            2,
            "Rice bowl",
            [
                {"name": "rice", "quantity": 0.5, "unit": "cups"},
                {"name": "  ", "quantity": 1, "unit": "cup"},
            ],
        ),
    ]

    items = consolidate_ingredients(recipes)

    assert [(item.name, item.unit, item.quantity) for item in items] == [
        ("Coconut milk", "can", 1.0),
        ("rice", "cup", 1.5),
        ("rice", "g", 200.0),
    ]
    assert items[1].recipe_names == ["Curry", "Rice bowl"]


def test_same_recipe_listed_once_per_entry():
    recipes = [
        _stored_recipe(
            1,
            "Omelette",
            [
                {"name": "eggs", "quantity": 2, "unit": "piece"},
                {"name": "Eggs", "quantity": 1, "unit": "pieces"},
            ],
        )
    ]

    [eggs] = consolidate_ingredients(recipes)
    assert eggs.quantity == 3
    assert eggs.recipe_names == ["Omelette"]


def test_grouping_and_stats():
    recipes = [
        _stored_recipe(
            1,
            "Salad",
            [
                {"name": "lettuce", "quantity": 1, "unit": "head"},
                {"name": "feta cheese", "quantity": 50, "unit": "g"},
                {"name": "olive oil", "quantity": 1, "unit": "tbsp"},
            ],
        )
    ]
    items = consolidate_ingredients(recipes)
    items[0] = items[0].model_copy(update={"checked": True})

    grouped = group_by_category(items)
    assert list(grouped) == [GroceryCategory.PRODUCE, GroceryCategory.DAIRY, GroceryCategory.PANTRY]

    stats = calculate_stats(items, total_meals=1)
    assert stats.total_items == 3
    assert stats.checked_items == 1
    assert stats.completion_percentage == pytest.approx(33.33)
    assert stats.items_by_category[GroceryCategory.SEAFOOD] == 0
    assert stats.items_by_category[GroceryCategory.DAIRY] == 1
    assert calculate_stats([]).completion_percentage == 0.0


@pytest.mark.parametrize(
    "quantity,expected",
    [(2.0, "2"), (1.5, "1.5"), (0.333333, "0.33"), (0.0, "0"), (0.25, "0.25")],
)
def test_format_quantity(quantity, expected):
    assert format_quantity(quantity) == expected


def test_format_ingredient_skips_empty_unit():
    [item] = consolidate_ingredients(
        [_stored_recipe(1, "Toast", [{"name": "bread", "quantity": 2, "unit": ""}])]
    )
    assert format_ingredient(item) == "2 bread"


def test_build_requires_generated_meals(orchestrator, consolidator):
    plan = orchestrator.create_plan(1, plan_request())

    with pytest.raises(NoGeneratedMeals):
        consolidator.build_or_refresh_shopping_list(plan.id, 1)
    with pytest.raises(NotFound):
        consolidator.get_shopping_list(plan.id, 1)


def test_build_refresh_and_check_off(orchestrator, gateway, consolidator):
    gateway.script.extend(
        [
            make_result(
                make_recipe("r1", ingredients=[{"name": "Tomato", "quantity": 1, "unit": "cups"}])
            ),
            make_result(
                make_recipe(
                    "r2",
                    ingredients=[
                        {"name": "tomato", "quantity": 0.5, "unit": "cup"},
                        {"name": "salmon", "quantity": 200, "unit": "g"},
                    ],
                )
            ),
        ]
    )
    plan = orchestrator.create_plan(1, plan_request())
    orchestrator.generate_slot(plan.id, plan.slots[0].id, 1)
    orchestrator.generate_slot(plan.id, plan.slots[2].id, 1)

    view = consolidator.build_or_refresh_shopping_list(plan.id, 1)

    names = [(item.name, item.quantity, item.unit) for item in view.shopping_list.ingredients]
    assert names == [("salmon", 200.0, "g"), ("Tomato", 1.5, "cup")]
    assert view.stats.total_meals == 2
    assert list(view.ingredients_by_category) == [GroceryCategory.PRODUCE, GroceryCategory.SEAFOOD]

    checked = consolidator.set_ingredient_checked(plan.id, 1, "Tomato", True)
    assert checked.shopping_list.checked_items == 1
    assert checked.stats.completion_percentage == pytest.approx(50.0)
    with pytest.raises(NotFound):
        consolidator.set_ingredient_checked(plan.id, 1, "tomatoes", True)

    rebuilt = consolidator.build_or_refresh_shopping_list(plan.id, 1)
    assert rebuilt.shopping_list.checked_items == 0
    assert rebuilt.shopping_list.id == view.shopping_list.id
    again = consolidator.get_shopping_list(plan.id, 1)
    assert again.shopping_list.ingredients == rebuilt.shopping_list.ingredients


def test_refresh_can_preserve_checked_items(orchestrator):
    plan = orchestrator.create_plan(1, plan_request())
    orchestrator.generate_slot(plan.id, plan.slots[0].id, 1)
    consolidator = IngredientConsolidator(preserve_checked=True)
    consolidator.build_or_refresh_shopping_list(plan.id, 1)
    consolidator.set_ingredient_checked(plan.id, 1, "rice", True)

    orchestrator.generate_slot(plan.id, plan.slots[1].id, 1)
    refreshed = consolidator.build_or_refresh_shopping_list(plan.id, 1)

    [rice] = refreshed.shopping_list.ingredients
    assert rice.quantity == 2
    assert rice.checked
    assert len(rice.recipe_ids) == 2


def test_shopping_list_is_scoped_to_owner(orchestrator, consolidator):
    plan = orchestrator.create_plan(1, plan_request())
    orchestrator.generate_slot(plan.id, plan.slots[0].id, 1)
    consolidator.build_or_refresh_shopping_list(plan.id, 1)

    with pytest.raises(NotFound):
        consolidator.get_shopping_list(plan.id, 2)
    with pytest.raises(NotFound):
        consolidator.build_or_refresh_shopping_list(plan.id, 2)
