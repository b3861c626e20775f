"""Shopping list persistence helpers."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from mealweek.errors import NotFound
from mealweek.models.shopping import ShoppingList, ShoppingListIngredient

from .codec import decode_json, encode_json
from .models import ShoppingListORM, WeeklyMealPlanORM
from .repository import session_scope


def _to_model(row: ShoppingListORM) -> ShoppingList:
    return ShoppingList.model_validate(
        {
            "id": row.id,
            "plan_id": row.plan_id,
            "ingredients": decode_json(row.ingredients, []),
            "total_items": row.total_items,
            "checked_items": row.checked_items,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }
    )


def _require_plan(session: Session, plan_id: int, user_id: int, *, for_update: bool = False) -> None:
    stmt = select(WeeklyMealPlanORM.id).where(
        WeeklyMealPlanORM.id == plan_id, WeeklyMealPlanORM.user_id == user_id
    )
    if for_update:
        stmt = stmt.with_for_update()
    if session.execute(stmt).scalar_one_or_none() is None:
        raise NotFound(f"Meal plan {plan_id} not found")


def _row_for_plan(session: Session, plan_id: int) -> Optional[ShoppingListORM]:
    return session.execute(
        select(ShoppingListORM).where(ShoppingListORM.plan_id == plan_id)
    ).scalar_one_or_none()


def _ingredient_key(item: ShoppingListIngredient) -> tuple[str, str]:
    return item.name.strip().lower(), item.unit


def _store(row: ShoppingListORM, ingredients: Sequence[ShoppingListIngredient]) -> None:
    row.ingredients = encode_json([item.model_dump(mode="json") for item in ingredients])
    row.total_items = len(ingredients)
    row.checked_items = sum(1 for item in ingredients if item.checked)


def get_for_plan(plan_id: int, user_id: int) -> Optional[ShoppingList]:
    """Return the plan's shopping list, or None when none has been built yet."""

    with session_scope() as session:
        _require_plan(session, plan_id, user_id)
        row = _row_for_plan(session, plan_id)
        return _to_model(row) if row else None


def upsert_for_plan(
    plan_id: int,
    user_id: int,
    ingredients: Sequence[ShoppingListIngredient],
    *,
    preserve_checked: bool = False,
) -> ShoppingList:
    """Create or replace the plan's shopping list.

    Replacing resets every ``checked`` flag unless ``preserve_checked`` is set,
    in which case entries matching a previously checked ``(name, unit)`` stay
    checked.
    """

    with session_scope() as session:
        _require_plan(session, plan_id, user_id, for_update=True)
        row = _row_for_plan(session, plan_id)
        previously_checked: set[tuple[str, str]] = set()
        if row is None:
            row = ShoppingListORM(plan_id=plan_id)
            session.add(row)
        elif preserve_checked:
            previously_checked = {
                _ingredient_key(item) for item in _to_model(row).ingredients if item.checked
            }

        items = [
            item.model_copy(update={"checked": _ingredient_key(item) in previously_checked})
            for item in ingredients
        ]
        _store(row, items)
        session.flush()
        session.refresh(row)
        return _to_model(row)


def set_ingredient_checked(
    plan_id: int, user_id: int, ingredient_name: str, checked: bool
) -> ShoppingList:
    """Flip ``checked`` on the entry whose name matches exactly."""

    with session_scope() as session:
        _require_plan(session, plan_id, user_id, for_update=True)
        row = _row_for_plan(session, plan_id)
        if row is None:
            raise NotFound(f"Shopping list for plan {plan_id} not found")
        current = _to_model(row).ingredients
        if not any(item.name == ingredient_name for item in current):
            raise NotFound(f"Ingredient '{ingredient_name}' not found in shopping list")
        updated = [
            item.model_copy(update={"checked": bool(checked)})
            if item.name == ingredient_name
            else item
            for item in current
        ]
        _store(row, updated)
        session.flush()
        session.refresh(row)
        return _to_model(row)


__all__ = ["get_for_plan", "upsert_for_plan", "set_ingredient_checked"]
