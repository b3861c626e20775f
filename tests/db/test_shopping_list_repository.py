"""Tests for shopping list persistence helpers."""

from __future__ import annotations

import pytest

from mealweek.db import plans as plans_repo
from mealweek.db import shopping_list as shopping_repo
from mealweek.errors import NotFound
from mealweek.models.shopping import GroceryCategory, ShoppingListIngredient
from mealweek.planner.orchestrator import plan_slot_layout
from tests.support import plan_request


def _plan_id(user_id: int = 1) -> int:
    request = plan_request()
    return plans_repo.insert_plan(user_id, request, plan_slot_layout(request)).id


def _item(name: str, unit: str = "cup", quantity: float = 1.0) -> ShoppingListIngredient:
    return ShoppingListIngredient(
        name=name,
        quantity=quantity,
        unit=unit,
        category=GroceryCategory.PANTRY,
        recipe_names=["Soup"],
        recipe_ids=[1],
    )


def test_get_for_plan_is_none_until_built():
    plan_id = _plan_id()
    assert shopping_repo.get_for_plan(plan_id, 1) is None
    with pytest.raises(NotFound):
        shopping_repo.get_for_plan(plan_id, 2)


def test_upsert_replaces_and_resets_checked():
    plan_id = _plan_id()
    shopping_repo.upsert_for_plan(plan_id, 1, [_item("rice"), _item("beans")])
    checked = shopping_repo.set_ingredient_checked(plan_id, 1, "rice", True)
    assert checked.checked_items == 1

    replaced = shopping_repo.upsert_for_plan(plan_id, 1, [_item("rice"), _item("lentils")])

    assert [item.name for item in replaced.ingredients] == ["rice", "lentils"]
    assert replaced.total_items == 2
    assert replaced.checked_items == 0
    assert replaced.id == checked.id


def test_upsert_can_preserve_checked_entries():
    plan_id = _plan_id()
    shopping_repo.upsert_for_plan(plan_id, 1, [_item("Rice"), _item("beans")])
    shopping_repo.set_ingredient_checked(plan_id, 1, "Rice", True)

    refreshed = shopping_repo.upsert_for_plan(
        plan_id, 1, [_item("rice"), _item("rice", unit="g"), _item("beans")], preserve_checked=True
    )

    assert [item.checked for item in refreshed.ingredients] == [True, False, False]
    assert refreshed.checked_items == 1


def test_set_ingredient_checked_requires_exact_name():
    plan_id = _plan_id()
    with pytest.raises(NotFound, match="Shopping list"):
        shopping_repo.set_ingredient_checked(plan_id, 1, "rice", True)

    shopping_repo.upsert_for_plan(plan_id, 1, [_item("Rice")])
    with pytest.raises(NotFound, match="Ingredient 'rice' not found"):
        shopping_repo.set_ingredient_checked(plan_id, 1, "rice", True)

    unchecked = shopping_repo.set_ingredient_checked(plan_id, 1, "Rice", False)
    assert unchecked.checked_items == 0
