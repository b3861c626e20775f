"""Shared builders and fakes for the test suite."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Iterable, Optional, Union

from mealweek.models.generation import GenerationRequest, GenerationResult
from mealweek.models.plan import CreatePlanRequest
from mealweek.models.recipe import GeneratedRecipe

ScriptStep = Union[GenerationResult, Exception, Callable[[GenerationRequest], GenerationResult]]


def make_recipe(name: str = "Test Recipe", ingredients: Optional[list[dict[str, Any]]] = None, **overrides: Any) -> GeneratedRecipe:
    payload: dict[str, Any] = {
        "name": name,
        "description": f"{name} for testing.",
        "ingredients": ingredients
        if ingredients is not None
        else [{"name": "rice", "quantity": 1, "unit": "cup"}],
        "instructions": ["Cook it.", "Serve it."],
        "nutrition": {"calories": 400, "protein": 20, "carbs": 50, "fat": 10},
        "prep_time": 10,
        "cook_time": 20,
        "servings": 2,
        "difficulty": "easy",
        "cuisine_type": "test",
        "meal_type": "dinner",
        "tags": [],
    }
    payload.update(overrides)
    return GeneratedRecipe.model_validate(payload)


def make_result(recipe: Optional[GeneratedRecipe] = None, **scores: Any) -> GenerationResult:
    return GenerationResult(
        recipe=recipe or make_recipe(),
        confidence=scores.get("confidence", 0.9),
        variety_score=scores.get("variety_score", 0.8),
        nutrition_accuracy=scores.get("nutrition_accuracy", 0.85),
    )


class ScriptedGateway:
    """Gateway fake that replays scripted steps, then falls back to numbered recipes."""

    def __init__(self, script: Iterable[ScriptStep] = ()) -> None:
        self.script = list(script)
        self.requests: list[GenerationRequest] = []

    def generate(self, request: GenerationRequest) -> GenerationResult:
        self.requests.append(request)
        if self.script:
            step = self.script.pop(0)
            if isinstance(step, Exception):
                raise step
            if callable(step):
                return step(request)
            return step
        name = f"{request.meal_type.value.title()} Recipe {len(self.requests)}"
        return make_result(make_recipe(name, meal_type=request.meal_type.value))


def plan_request(**overrides: Any) -> CreatePlanRequest:
    payload: dict[str, Any] = {
        "name": "Week of tests",
        "start_date": date(2026, 1, 5),
        "end_date": date(2026, 1, 11),
        "breakfast_count": 2,
        "lunch_count": 0,
        "dinner_count": 1,
        "snack_count": 0,
    }
    payload.update(overrides)
    return CreatePlanRequest.model_validate(payload)
