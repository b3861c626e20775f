"""Recipe contracts shared by the gateway, the orchestrator and the consolidator."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_MIXED_FRACTION_RE = re.compile(r"^\s*(\d+)\s+(\d+)\s*/\s*(\d+)\s*$")
_FRACTION_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")


def _parse_quantity(value: Any) -> Any:
    """Accept "1/2" and "1 1/2" style quantities emitted by language models."""

    if not isinstance(value, str):
        return value
    if match := _MIXED_FRACTION_RE.match(value):
        whole, num, den = (int(part) for part in match.groups())
        return whole + num / den if den else whole
    if match := _FRACTION_RE.match(value):
        num, den = (int(part) for part in match.groups())
        return num / den if den else 0.0
    try:
        return float(value.strip())
    except ValueError:
        return 0.0


class Ingredient(BaseModel):
    """Single ingredient line of a recipe."""

    name: str
    quantity: float = Field(default=0.0, ge=0)
    unit: str = Field(default="")

    model_config = ConfigDict(frozen=True)

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, value: Any) -> Any:
        if value is None:
            return 0.0
        return _parse_quantity(value)

    @field_validator("unit", mode="before")
    @classmethod
    def coerce_unit(cls, value: Any) -> Any:
        return "" if value is None else value


class Nutrition(BaseModel):
    """Nutrition totals per serving."""

    calories: Optional[float] = Field(default=None, ge=0)
    protein: Optional[float] = Field(default=None, ge=0)
    carbs: Optional[float] = Field(default=None, ge=0)
    fat: Optional[float] = Field(default=None, ge=0)
    fiber: Optional[float] = Field(default=None, ge=0)

    model_config = ConfigDict(frozen=True)


class GeneratedRecipe(BaseModel):
    """Candidate recipe as returned by the generation gateway.

    Every field is optional so structurally incomplete payloads still parse; the
    orchestrator decides completeness through :meth:`missing_fields`.
    """

    name: str = ""
    description: str = ""
    ingredients: list[Ingredient] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    nutrition: Optional[Nutrition] = None
    prep_time: Optional[int] = Field(default=None, ge=0)
    cook_time: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, ge=1)
    difficulty: Optional[str] = None
    cuisine_type: Optional[str] = None
    meal_type: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    def missing_fields(self) -> list[str]:
        missing: list[str] = []
        if not self.name.strip():
            missing.append("name")
        if not self.description.strip():
            missing.append("description")
        if not self.ingredients:
            missing.append("ingredients")
        if not [step for step in self.instructions if step.strip()]:
            missing.append("instructions")
        if self.nutrition is None:
            missing.append("nutrition")
        return missing


class Recipe(BaseModel):
    """Persisted recipe; immutable apart from the saved flag."""

    id: int
    user_id: int
    name: str
    description: str
    ingredients: list[Ingredient] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    nutrition: Nutrition
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[str] = None
    cuisine_type: Optional[str] = None
    meal_type: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    is_saved: bool = False
    created_at: datetime

    model_config = ConfigDict(frozen=True)


__all__ = ["Ingredient", "Nutrition", "GeneratedRecipe", "Recipe"]
