"""Per-user nutrition profile feeding recipe generation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from mealweek.models.generation import NutritionTargets

MEALS_PER_DAY = 3


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class NutritionGoal(str, Enum):
    LOSE_WEIGHT = "lose_weight"
    GAIN_MUSCLE = "gain_muscle"
    MAINTAIN = "maintain"


class NutritionProfileUpdate(BaseModel):
    """Body metrics and daily targets; every field is optional."""

    age: Optional[int] = Field(default=None, ge=1, le=120)
    height_cm: Optional[int] = Field(default=None, ge=50, le=272)
    weight_kg: Optional[int] = Field(default=None, ge=20, le=500)
    activity_level: Optional[ActivityLevel] = None
    goals: Optional[NutritionGoal] = None
    daily_calories: Optional[int] = Field(default=None, ge=0, le=10000)
    macro_protein: Optional[int] = Field(default=None, ge=0, le=1000)
    macro_carbs: Optional[int] = Field(default=None, ge=0, le=2000)
    macro_fat: Optional[int] = Field(default=None, ge=0, le=1000)


class NutritionProfile(NutritionProfileUpdate):
    user_id: int
    updated_at: Optional[datetime] = None

    def meal_targets(self) -> Optional[NutritionTargets]:
        """Split the daily totals evenly across three meals."""

        daily = {
            "calories": self.daily_calories,
            "protein": self.macro_protein,
            "carbs": self.macro_carbs,
            "fat": self.macro_fat,
        }
        per_meal = {
            key: round(value / MEALS_PER_DAY) for key, value in daily.items() if value
        }
        if not per_meal:
            return None
        return NutritionTargets(**per_meal)

    def generation_profile(self) -> Optional[dict[str, object]]:
        """Body metrics for the generation prompt, or None when nothing is set."""

        profile: dict[str, object] = {
            "age": self.age,
            "weight_kg": self.weight_kg,
            "height_cm": self.height_cm,
            "activity_level": self.activity_level.value if self.activity_level else None,
            "goals": self.goals.value if self.goals else None,
        }
        profile = {key: value for key, value in profile.items() if value}
        return profile or None


__all__ = [
    "ActivityLevel",
    "NutritionGoal",
    "NutritionProfileUpdate",
    "NutritionProfile",
    "MEALS_PER_DAY",
]
