"""Shopping list models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class GroceryCategory(str, Enum):
    PRODUCE = "produce"
    DAIRY = "dairy"
    MEAT = "meat"
    POULTRY = "poultry"
    SEAFOOD = "seafood"
    BAKERY = "bakery"
    FROZEN = "frozen"
    SPICES = "spices"
    BEVERAGES = "beverages"
    PANTRY = "pantry"


class ShoppingListIngredient(BaseModel):
    """Consolidated ingredient with the recipes that contributed to it."""

    name: str
    quantity: float
    unit: str
    category: GroceryCategory
    checked: bool = False
    recipe_names: list[str] = Field(default_factory=list)
    recipe_ids: list[int] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ShoppingList(BaseModel):
    """Shopping list owned by a single weekly plan."""

    id: int
    plan_id: int
    ingredients: list[ShoppingListIngredient] = Field(default_factory=list)
    total_items: int = 0
    checked_items: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)


class ShoppingListStats(BaseModel):
    total_items: int
    checked_items: int
    items_by_category: dict[GroceryCategory, int]
    completion_percentage: float
    total_meals: int = 0


class ShoppingListView(BaseModel):
    """Shopping list plus its display grouping and summary statistics."""

    shopping_list: ShoppingList
    ingredients_by_category: dict[GroceryCategory, list[ShoppingListIngredient]]
    stats: ShoppingListStats


__all__ = [
    "GroceryCategory",
    "ShoppingListIngredient",
    "ShoppingList",
    "ShoppingListStats",
    "ShoppingListView",
]
