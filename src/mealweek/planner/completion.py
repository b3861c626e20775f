"""Completion aggregation over a plan's slots."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from mealweek.models.plan import (
    CATEGORY_ORDER,
    CategoryCompletion,
    MealCategory,
    NextCategory,
    PlanCompletion,
    SlotStatus,
)


def summarize_completion(slots: Iterable[tuple[MealCategory, SlotStatus]]) -> PlanCompletion:
    """Aggregate ``(category, status)`` pairs into a :class:`PlanCompletion`.

    Only categories that have at least one slot appear in
    ``completion_by_category``. A plan with no slots is never complete.
    """

    totals: dict[MealCategory, int] = {}
    locked: dict[MealCategory, int] = {}
    for category, status in slots:
        totals[category] = totals.get(category, 0) + 1
        if status == SlotStatus.LOCKED:
            locked[category] = locked.get(category, 0) + 1

    by_category: dict[MealCategory, CategoryCompletion] = {}
    for category in CATEGORY_ORDER:
        total = totals.get(category, 0)
        if total == 0:
            continue
        done = locked.get(category, 0)
        by_category[category] = CategoryCompletion(
            category=category,
            is_complete=done == total,
            total_meals=total,
            locked_meals=done,
        )

    total_meals = sum(totals.values())
    locked_meals = sum(locked.values())
    return PlanCompletion(
        is_complete=total_meals > 0 and locked_meals == total_meals,
        total_meals=total_meals,
        locked_meals=locked_meals,
        completion_by_category=by_category,
    )


def next_category(completion: PlanCompletion) -> NextCategory:
    """First incomplete category in breakfast, lunch, dinner, snack order."""

    order: Sequence[CategoryCompletion] = [
        completion.completion_by_category[category]
        for category in CATEGORY_ORDER
        if category in completion.completion_by_category
    ]
    upcoming: Optional[MealCategory] = next(
        (entry.category for entry in order if not entry.is_complete), None
    )
    return NextCategory(next_category=upcoming, processing_order=list(order))


__all__ = ["summarize_completion", "next_category"]
