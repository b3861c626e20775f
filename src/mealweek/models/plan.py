"""Weekly meal plan, slot and completion models."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from mealweek.models.recipe import Recipe


class MealCategory(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


# Recommended processing order; also the order slots are created in.
CATEGORY_ORDER: tuple[MealCategory, ...] = (
    MealCategory.BREAKFAST,
    MealCategory.LUNCH,
    MealCategory.DINNER,
    MealCategory.SNACK,
)


class SlotStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    GENERATED = "generated"
    LOCKED = "locked"


class PlanStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class MealPreferences(BaseModel):
    """Generation preferences; ``None`` means "not set at this level"."""

    allergies: Optional[list[str]] = None
    dietary_restrictions: Optional[list[str]] = None
    cuisine_preferences: Optional[list[str]] = None
    max_prep_time: Optional[int] = Field(default=None, ge=0, le=180)
    max_cook_time: Optional[int] = Field(default=None, ge=0, le=480)
    difficulty_level: Optional[Difficulty] = None

    model_config = ConfigDict(frozen=True)


class CreatePlanRequest(BaseModel):
    """Payload for creating a weekly plan.

    Counts and name are deliberately unconstrained here so the orchestrator can
    report every violated rule at once.
    """

    name: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    breakfast_count: int = 0
    lunch_count: int = 0
    dinner_count: int = 0
    snack_count: int = 0
    global_preferences: Optional[MealPreferences] = None

    def count_for(self, category: MealCategory) -> int:
        return getattr(self, f"{category.value}_count")

    @property
    def total_meals(self) -> int:
        return sum(self.count_for(category) for category in CATEGORY_ORDER)


class UpdatePlanRequest(BaseModel):
    """Partial plan update; only fields present in the payload are applied.

    An explicit ``global_preferences: null`` clears the plan-level preferences.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[PlanStatus] = None
    global_preferences: Optional[MealPreferences] = None


class MealPlanItem(BaseModel):
    """One meal slot of a weekly plan."""

    id: int
    plan_id: int
    category: MealCategory
    day_number: int = Field(ge=1, le=7)
    status: SlotStatus = SlotStatus.PENDING
    custom_preferences: Optional[MealPreferences] = None
    recipe_id: Optional[int] = None
    recipe: Optional[Recipe] = None
    locked_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_recipe_matches_status(self) -> "MealPlanItem":
        has_recipe_status = self.status in (SlotStatus.GENERATED, SlotStatus.LOCKED)
        if has_recipe_status != (self.recipe_id is not None):
            raise ValueError(
                f"slot {self.id} is {self.status.value} with recipe_id={self.recipe_id}"
            )
        return self


class WeeklyMealPlan(BaseModel):
    """Weekly plan aggregate with its slots in creation order."""

    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    breakfast_count: int
    lunch_count: int
    dinner_count: int
    snack_count: int
    total_meals: int
    status: PlanStatus
    global_preferences: Optional[MealPreferences] = None
    slots: list[MealPlanItem] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    def slot(self, slot_id: int) -> Optional[MealPlanItem]:
        return next((slot for slot in self.slots if slot.id == slot_id), None)

    def slots_in(self, category: MealCategory) -> list[MealPlanItem]:
        return [slot for slot in self.slots if slot.category == category]


class PlanPage(BaseModel):
    plans: list[WeeklyMealPlan]
    total: int
    limit: int
    offset: int


class CategoryCompletion(BaseModel):
    category: MealCategory
    is_complete: bool
    total_meals: int
    locked_meals: int


class PlanCompletion(BaseModel):
    is_complete: bool
    total_meals: int
    locked_meals: int
    completion_by_category: dict[MealCategory, CategoryCompletion]


class NextCategory(BaseModel):
    next_category: Optional[MealCategory]
    processing_order: list[CategoryCompletion]


class LockResult(BaseModel):
    slot: MealPlanItem
    category_complete: bool
    plan_complete: bool
    plan_status: PlanStatus


class SlotGeneration(BaseModel):
    """Generated slot plus the quality metadata reported by the gateway."""

    slot: MealPlanItem
    confidence: Optional[float] = None
    variety_score: Optional[float] = None
    nutrition_accuracy: Optional[float] = None


class SlotOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class SlotResult(BaseModel):
    slot_id: int
    outcome: SlotOutcome
    recipe: Optional[Recipe] = None
    error: Optional[str] = None


class BatchResult(BaseModel):
    """Per-slot outcomes of a batch run, in processing order."""

    results: list[SlotResult] = Field(default_factory=list)
    limit_reached: bool = False
    cancelled: bool = False

    @computed_field
    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.outcome == SlotOutcome.SUCCESS)

    @computed_field
    @property
    def failed(self) -> int:
        return sum(1 for result in self.results if result.outcome == SlotOutcome.FAILED)


__all__ = [
    "MealCategory",
    "CATEGORY_ORDER",
    "SlotStatus",
    "PlanStatus",
    "Difficulty",
    "MealPreferences",
    "CreatePlanRequest",
    "UpdatePlanRequest",
    "MealPlanItem",
    "WeeklyMealPlan",
    "PlanPage",
    "CategoryCompletion",
    "PlanCompletion",
    "NextCategory",
    "LockResult",
    "SlotGeneration",
    "SlotOutcome",
    "SlotResult",
    "BatchResult",
]
