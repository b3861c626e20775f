"""Pydantic models defining shared data contracts."""

from mealweek.models.generation import GenerationRequest, GenerationResult, NutritionTargets
from mealweek.models.nutrition import (
    ActivityLevel,
    NutritionGoal,
    NutritionProfile,
    NutritionProfileUpdate,
)
from mealweek.models.plan import (
    CATEGORY_ORDER,
    BatchResult,
    CategoryCompletion,
    CreatePlanRequest,
    Difficulty,
    LockResult,
    MealCategory,
    MealPlanItem,
    MealPreferences,
    NextCategory,
    PlanCompletion,
    PlanPage,
    PlanStatus,
    SlotGeneration,
    SlotOutcome,
    SlotResult,
    SlotStatus,
    UpdatePlanRequest,
    WeeklyMealPlan,
)
from mealweek.models.recipe import GeneratedRecipe, Ingredient, Nutrition, Recipe
from mealweek.models.shopping import (
    GroceryCategory,
    ShoppingList,
    ShoppingListIngredient,
    ShoppingListStats,
    ShoppingListView,
)
from mealweek.models.usage import UsageSnapshot

__all__ = [
    "GenerationRequest",
    "GenerationResult",
    "NutritionTargets",
    "ActivityLevel",
    "NutritionGoal",
    "NutritionProfile",
    "NutritionProfileUpdate",
    "CATEGORY_ORDER",
    "BatchResult",
    "CategoryCompletion",
    "CreatePlanRequest",
    "Difficulty",
    "LockResult",
    "MealCategory",
    "MealPlanItem",
    "MealPreferences",
    "NextCategory",
    "PlanCompletion",
    "PlanPage",
    "PlanStatus",
    "SlotGeneration",
    "SlotOutcome",
    "SlotResult",
    "SlotStatus",
    "UpdatePlanRequest",
    "WeeklyMealPlan",
    "GeneratedRecipe",
    "Ingredient",
    "Nutrition",
    "Recipe",
    "GroceryCategory",
    "ShoppingList",
    "ShoppingListIngredient",
    "ShoppingListStats",
    "ShoppingListView",
    "UsageSnapshot",
]
