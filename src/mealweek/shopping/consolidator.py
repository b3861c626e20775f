"""Consolidate the ingredients of a plan's generated recipes into a shopping list."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from mealweek.db import plans as plans_repo
from mealweek.db import shopping_list as shopping_repo
from mealweek.errors import NoGeneratedMeals, NotFound
from mealweek.metrics import SHOPPING_LIST_BUILDS
from mealweek.models.recipe import Recipe
from mealweek.models.shopping import (
    GroceryCategory,
    ShoppingList,
    ShoppingListIngredient,
    ShoppingListStats,
    ShoppingListView,
)

from .categories import categorize_ingredient
from .units import normalize_unit

logger = logging.getLogger(__name__)


@dataclass
class _MergedIngredient:
    name: str
    unit: str
    quantity: float = 0.0
    recipe_names: List[str] = field(default_factory=list)
    recipe_ids: List[int] = field(default_factory=list)

    def add(self, quantity: float, recipe: Recipe) -> None:
        self.quantity += quantity
        if recipe.name not in self.recipe_names:
            self.recipe_names.append(recipe.name)
            self.recipe_ids.append(recipe.id)


def consolidate_ingredients(recipes: Iterable[Recipe]) -> List[ShoppingListIngredient]:
    """Merge ingredient lines by ``(name, normalized unit)`` and sort by name.

    Names compare case-insensitively; the first spelling seen is the one shown.
    Every entry starts unchecked.
    """

    merged: dict[tuple[str, str], _MergedIngredient] = {}
    for recipe in recipes:
        for ingredient in recipe.ingredients:
            display_name = ingredient.name.strip()
            if not display_name:
                continue
            unit = normalize_unit(ingredient.unit)
            key = (display_name.lower(), unit)
            entry = merged.get(key)
            if entry is None:
                entry = merged[key] = _MergedIngredient(name=display_name, unit=unit)
            entry.add(ingredient.quantity, recipe)

    items = [
        ShoppingListIngredient(
            name=entry.name,
            quantity=round(entry.quantity, 4),
            unit=entry.unit,
            category=categorize_ingredient(entry.name),
            checked=False,
            recipe_names=entry.recipe_names,
            recipe_ids=entry.recipe_ids,
        )
        for entry in merged.values()
    ]
    return sorted(items, key=lambda item: (item.name.lower(), item.name, item.unit))


def group_by_category(
    ingredients: Sequence[ShoppingListIngredient],
) -> dict[GroceryCategory, List[ShoppingListIngredient]]:
    """Group entries by category, omitting empty categories, in taxonomy order."""

    grouped: dict[GroceryCategory, List[ShoppingListIngredient]] = {
        category: [] for category in GroceryCategory
    }
    for item in ingredients:
        grouped[item.category].append(item)
    return {category: items for category, items in grouped.items() if items}


def calculate_stats(
    ingredients: Sequence[ShoppingListIngredient], total_meals: int = 0
) -> ShoppingListStats:
    total = len(ingredients)
    checked = sum(1 for item in ingredients if item.checked)
    by_category = {category: 0 for category in GroceryCategory}
    for item in ingredients:
        by_category[item.category] += 1
    return ShoppingListStats(
        total_items=total,
        checked_items=checked,
        items_by_category=by_category,
        completion_percentage=round(checked / total * 100, 2) if total else 0.0,
        total_meals=total_meals,
    )


def format_quantity(quantity: float) -> str:
    """Whole numbers without decimals, otherwise at most two decimals."""

    if float(quantity).is_integer():
        return str(int(quantity))
    return f"{quantity:.2f}".rstrip("0").rstrip(".")


def format_ingredient(item: ShoppingListIngredient) -> str:
    parts = [format_quantity(item.quantity), item.unit, item.name]
    return " ".join(part for part in parts if part)


class IngredientConsolidator:
    """Builds, reads and checks off the shopping list of a weekly plan."""

    def __init__(self, *, preserve_checked: bool = False) -> None:
        self._preserve_checked = preserve_checked

    def build_or_refresh_shopping_list(self, plan_id: int, user_id: int) -> ShoppingListView:
        recipes = self._plan_recipes(plan_id, user_id)
        if not recipes:
            SHOPPING_LIST_BUILDS.labels(result="no_meals").inc()
            raise NoGeneratedMeals("No generated meals found in this meal plan")

        ingredients = consolidate_ingredients(recipes)
        stored = shopping_repo.upsert_for_plan(
            plan_id, user_id, ingredients, preserve_checked=self._preserve_checked
        )
        SHOPPING_LIST_BUILDS.labels(result="built").inc()
        logger.info(
            "Built shopping list with %d items from %d meals",
            stored.total_items,
            len(recipes),
            extra={"user_id": user_id, "plan_id": plan_id},
        )
        return self._view(stored, total_meals=len(recipes))

    def get_shopping_list(self, plan_id: int, user_id: int) -> ShoppingListView:
        stored = shopping_repo.get_for_plan(plan_id, user_id)
        if stored is None:
            raise NotFound(f"Shopping list for plan {plan_id} not found")
        return self._view(stored, total_meals=len(self._plan_recipes(plan_id, user_id)))

    def set_ingredient_checked(
        self, plan_id: int, user_id: int, ingredient_name: str, checked: bool
    ) -> ShoppingListView:
        stored = shopping_repo.set_ingredient_checked(plan_id, user_id, ingredient_name, checked)
        logger.debug(
            "%s shopping list item %r",
            "Checked" if checked else "Unchecked",
            ingredient_name,
            extra={"user_id": user_id, "plan_id": plan_id},
        )
        return self._view(stored, total_meals=len(self._plan_recipes(plan_id, user_id)))

    @staticmethod
    def _plan_recipes(plan_id: int, user_id: int) -> List[Recipe]:
        return [
            slot.recipe
            for slot in plans_repo.list_recipe_bearing_slots(plan_id, user_id)
            if slot.recipe is not None and slot.recipe.ingredients
        ]

    @staticmethod
    def _view(shopping_list: ShoppingList, *, total_meals: int) -> ShoppingListView:
        return ShoppingListView(
            shopping_list=shopping_list,
            ingredients_by_category=group_by_category(shopping_list.ingredients),
            stats=calculate_stats(shopping_list.ingredients, total_meals),
        )


__all__ = [
    "consolidate_ingredients",
    "group_by_category",
    "calculate_stats",
    "format_quantity",
    "format_ingredient",
    "IngredientConsolidator",
]
