"""Error taxonomy shared by the orchestrator, consolidator and HTTP layer."""

from __future__ import annotations

from typing import Iterable, Optional


class MealPlanError(Exception):
    """Base class for domain errors surfaced to callers."""


class ValidationError(MealPlanError):
    """Malformed create/update request; carries every violated constraint."""

    def __init__(self, errors: Iterable[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid request")


class NotFound(MealPlanError):
    """Plan, slot, recipe or shopping list is absent or not owned by the caller."""


class PreconditionFailed(MealPlanError):
    """Requested transition is not allowed from the current state."""


class NoGeneratedMeals(PreconditionFailed):
    """Shopping list requested before any slot has a generated recipe."""


class QuotaExceeded(MealPlanError):
    """Usage limiter denied the operation for the current period."""

    def __init__(self, counter: str, message: Optional[str] = None):
        self.counter = counter
        super().__init__(message or f"Usage limit reached for {counter}")


class GenerationFailed(MealPlanError):
    """Gateway error, timeout, or structurally incomplete recipe payload."""


__all__ = [
    "MealPlanError",
    "ValidationError",
    "NotFound",
    "PreconditionFailed",
    "NoGeneratedMeals",
    "QuotaExceeded",
    "GenerationFailed",
]
