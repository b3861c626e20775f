"""Layered preference resolution for meal generation."""

from __future__ import annotations

from typing import Optional

from mealweek.models.plan import MealPreferences

PREFERENCE_FIELDS: tuple[str, ...] = tuple(MealPreferences.model_fields)


def resolve_preferences(
    *layers: Optional[MealPreferences],
) -> MealPreferences:
    """Merge preference layers field by field, highest priority first.

    A field falls through to the next layer only when it is ``None``; empty
    lists and zero values are explicit choices and win over lower layers.
    """

    resolved: dict[str, object] = {}
    for field in PREFERENCE_FIELDS:
        for layer in layers:
            if layer is None:
                continue
            value = getattr(layer, field)
            if value is not None:
                resolved[field] = value
                break
    return MealPreferences(**resolved)


__all__ = ["PREFERENCE_FIELDS", "resolve_preferences"]
