"""Recipe generation gateway contract."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from mealweek.models.plan import Difficulty, MealCategory
from mealweek.models.recipe import GeneratedRecipe


class NutritionTargets(BaseModel):
    """Per-meal nutrition goals."""

    calories: Optional[float] = Field(default=None, ge=0)
    protein: Optional[float] = Field(default=None, ge=0)
    carbs: Optional[float] = Field(default=None, ge=0)
    fat: Optional[float] = Field(default=None, ge=0)

    model_config = ConfigDict(frozen=True)


class GenerationRequest(BaseModel):
    """Structured request handed to the recipe generation gateway."""

    meal_type: MealCategory
    nutrition_targets: Optional[NutritionTargets] = None
    allergies: list[str] = Field(default_factory=list)
    dietary_restrictions: list[str] = Field(default_factory=list)
    cuisine_preferences: list[str] = Field(default_factory=list)
    max_prep_time: Optional[int] = None
    max_cook_time: Optional[int] = None
    difficulty_level: Optional[Difficulty] = None
    user_profile: Optional[dict[str, object]] = None
    variety_hints: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class GenerationResult(BaseModel):
    """Candidate recipe plus the quality metadata reported by the generator."""

    recipe: GeneratedRecipe
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    variety_score: Optional[float] = Field(default=None, ge=0, le=1)
    nutrition_accuracy: Optional[float] = Field(default=None, ge=0, le=1)


__all__ = ["NutritionTargets", "GenerationRequest", "GenerationResult"]
