"""Meal slot lifecycle.

All slot status changes go through :func:`check_transition`::

    pending -> generating -> generated -> locked
                   |             ^   |      |
                   v             |   |      |
                pending          +---+------+  (unlock: locked -> generated)

``generating`` is transient and always resolves to ``generated`` or back to
``pending``. ``generated``/``locked`` return to ``pending`` only through the
explicit regenerate action, which also detaches the recipe.
"""

from __future__ import annotations

from typing import Optional

from mealweek.errors import PreconditionFailed
from mealweek.models.plan import SlotStatus

_TRANSITIONS: dict[SlotStatus, frozenset[SlotStatus]] = {
    SlotStatus.PENDING: frozenset({SlotStatus.GENERATING}),
    SlotStatus.GENERATING: frozenset({SlotStatus.GENERATED, SlotStatus.PENDING}),
    SlotStatus.GENERATED: frozenset({SlotStatus.LOCKED, SlotStatus.PENDING}),
    SlotStatus.LOCKED: frozenset({SlotStatus.GENERATED, SlotStatus.PENDING}),
}

_REJECTIONS: dict[SlotStatus, str] = {
    SlotStatus.GENERATING: "Meal can only be generated from pending; use regenerate for existing recipes",
    SlotStatus.LOCKED: "Cannot lock a meal without a generated recipe",
    SlotStatus.GENERATED: "Meal is not locked",
    SlotStatus.PENDING: "Meal is not awaiting a recipe",
}

RECIPE_STATUSES = frozenset({SlotStatus.GENERATED, SlotStatus.LOCKED})


def can_transition(current: SlotStatus, target: SlotStatus) -> bool:
    return target in _TRANSITIONS[current]


def check_transition(
    current: SlotStatus,
    target: SlotStatus,
    *,
    recipe_id: Optional[int],
) -> None:
    """Raise :class:`PreconditionFailed` unless ``current -> target`` is legal.

    ``recipe_id`` is the recipe the slot will hold after the transition; the
    recipe-bearing states require one.
    """

    if current == target == SlotStatus.LOCKED:
        raise PreconditionFailed("Meal is already locked")
    if not can_transition(current, target):
        raise PreconditionFailed(
            f"{_REJECTIONS[target]} (slot is {current.value})"
        )
    if target in RECIPE_STATUSES and recipe_id is None:
        if target == SlotStatus.LOCKED:
            raise PreconditionFailed(_REJECTIONS[SlotStatus.LOCKED])
        raise PreconditionFailed(f"Slot cannot become {target.value} without a recipe")


def needs_reset_for_regeneration(current: SlotStatus) -> bool:
    """Return True when regenerating must first detach the current recipe."""

    if current == SlotStatus.GENERATING:
        raise PreconditionFailed("Meal is already being generated")
    return current in RECIPE_STATUSES


__all__ = [
    "RECIPE_STATUSES",
    "can_transition",
    "check_transition",
    "needs_reset_for_regeneration",
]
