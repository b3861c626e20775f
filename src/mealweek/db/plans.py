"""Data access helpers for weekly meal plans and their slots.

Every public function is one unit of work. Slot status changes are applied as
conditional updates (``WHERE status = <expected>``) so a concurrent writer
that moved the slot first makes the second caller fail with
:class:`PreconditionFailed` instead of silently overwriting it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from mealweek.errors import NotFound, PreconditionFailed
from mealweek.models.plan import (
    CreatePlanRequest,
    LockResult,
    MealCategory,
    MealPlanItem,
    MealPreferences,
    PlanCompletion,
    PlanPage,
    PlanStatus,
    SlotStatus,
    UpdatePlanRequest,
    WeeklyMealPlan,
)
from mealweek.models.recipe import GeneratedRecipe, Recipe
from mealweek.planner.completion import summarize_completion
from mealweek.planner.state_machine import check_transition, needs_reset_for_regeneration

from .codec import decode_preferences, encode_preferences
from .models import MealPlanItemORM, ShoppingListORM, WeeklyMealPlanORM
from .recipes import add_recipe, load_recipes
from .repository import session_scope

MAX_PAGE_SIZE = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _slot_to_model(row: MealPlanItemORM, recipe: Optional[Recipe] = None) -> MealPlanItem:
    return MealPlanItem.model_validate(
        {
            "id": row.id,
            "plan_id": row.plan_id,
            "category": row.category,
            "day_number": row.day_number,
            "status": row.status,
            "custom_preferences": decode_preferences(row.custom_preferences),
            "recipe_id": row.recipe_id,
            "recipe": recipe,
            "locked_at": row.locked_at,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }
    )


def _plan_to_model(row: WeeklyMealPlanORM, slots: Sequence[MealPlanItem]) -> WeeklyMealPlan:
    return WeeklyMealPlan.model_validate(
        {
            "id": row.id,
            "user_id": row.user_id,
            "name": row.name,
            "description": row.description,
            "start_date": row.start_date,
            "end_date": row.end_date,
            "breakfast_count": row.breakfast_count,
            "lunch_count": row.lunch_count,
            "dinner_count": row.dinner_count,
            "snack_count": row.snack_count,
            "total_meals": row.total_meals,
            "status": row.status,
            "global_preferences": decode_preferences(row.global_preferences),
            "slots": list(slots),
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }
    )


def _load_plan_row(
    session: Session, plan_id: int, user_id: int, *, for_update: bool = False
) -> WeeklyMealPlanORM:
    stmt = select(WeeklyMealPlanORM).where(
        WeeklyMealPlanORM.id == plan_id, WeeklyMealPlanORM.user_id == user_id
    )
    if for_update:
        stmt = stmt.with_for_update()
    row = session.execute(stmt).scalar_one_or_none()
    if row is None:
        raise NotFound(f"Meal plan {plan_id} not found")
    return row


def _load_slot_row(session: Session, plan_id: int, slot_id: int) -> MealPlanItemORM:
    row = session.execute(
        select(MealPlanItemORM).where(
            MealPlanItemORM.id == slot_id, MealPlanItemORM.plan_id == plan_id
        )
    ).scalar_one_or_none()
    if row is None:
        raise NotFound(f"Meal {slot_id} not found in plan {plan_id}")
    return row


def _slot_rows(session: Session, plan_id: int) -> List[MealPlanItemORM]:
    return list(
        session.execute(
            select(MealPlanItemORM)
            .where(MealPlanItemORM.plan_id == plan_id)
            .order_by(MealPlanItemORM.id)
        )
        .scalars()
        .all()
    )


def _slots_with_recipes(session: Session, rows: Iterable[MealPlanItemORM]) -> List[MealPlanItem]:
    rows = list(rows)
    recipes = load_recipes(session, (row.recipe_id for row in rows))
    return [_slot_to_model(row, recipes.get(row.recipe_id)) for row in rows]


def _assemble(session: Session, plan_row: WeeklyMealPlanORM) -> WeeklyMealPlan:
    return _plan_to_model(plan_row, _slots_with_recipes(session, _slot_rows(session, plan_row.id)))


def _transition_slot(
    session: Session,
    slot_id: int,
    expected: SlotStatus,
    **values: object,
) -> None:
    result = session.execute(
        update(MealPlanItemORM)
        .where(MealPlanItemORM.id == slot_id, MealPlanItemORM.status == expected.value)
        .values(updated_at=_utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise PreconditionFailed(f"Meal {slot_id} changed state concurrently")


def _completion(session: Session, plan_id: int) -> PlanCompletion:
    pairs = session.execute(
        select(MealPlanItemORM.category, MealPlanItemORM.status).where(
            MealPlanItemORM.plan_id == plan_id
        )
    ).all()
    return summarize_completion(
        (MealCategory(category), SlotStatus(status)) for category, status in pairs
    )


def _reconcile_plan_status(plan_row: WeeklyMealPlanORM, complete: bool) -> None:
    """Keep ``completed`` equivalent to "every slot locked" for non-archived plans."""

    if complete and plan_row.status == PlanStatus.IN_PROGRESS.value:
        plan_row.status = PlanStatus.COMPLETED.value
        plan_row.updated_at = _utcnow()
    elif not complete and plan_row.status == PlanStatus.COMPLETED.value:
        plan_row.status = PlanStatus.IN_PROGRESS.value
        plan_row.updated_at = _utcnow()


def insert_plan(
    user_id: int,
    request: CreatePlanRequest,
    layout: Sequence[tuple[MealCategory, int]],
) -> WeeklyMealPlan:
    """Persist a plan and one slot per ``(category, day_number)`` entry of ``layout``."""

    with session_scope() as session:
        plan_row = WeeklyMealPlanORM(
            user_id=user_id,
            name=request.name.strip(),
            description=request.description,
            start_date=request.start_date,
            end_date=request.end_date,
            breakfast_count=request.breakfast_count,
            lunch_count=request.lunch_count,
            dinner_count=request.dinner_count,
            snack_count=request.snack_count,
            total_meals=request.total_meals,
            status=PlanStatus.IN_PROGRESS.value,
            global_preferences=encode_preferences(request.global_preferences),
        )
        session.add(plan_row)
        session.flush()
        session.add_all(
            [
                MealPlanItemORM(
                    plan_id=plan_row.id,
                    category=category.value,
                    day_number=day_number,
                    status=SlotStatus.PENDING.value,
                )
                for category, day_number in layout
            ]
        )
        session.flush()
        session.refresh(plan_row)
        return _assemble(session, plan_row)


def get_plan_with_slots(plan_id: int, user_id: int) -> WeeklyMealPlan:
    with session_scope() as session:
        return _assemble(session, _load_plan_row(session, plan_id, user_id))


def list_plans(
    user_id: int,
    *,
    status: Optional[PlanStatus] = None,
    limit: int = 10,
    offset: int = 0,
) -> PlanPage:
    """Return the user's plans newest first together with the unpaged total."""

    limit = max(1, min(limit, MAX_PAGE_SIZE))
    offset = max(0, offset)
    conditions = [WeeklyMealPlanORM.user_id == user_id]
    if status is not None:
        conditions.append(WeeklyMealPlanORM.status == status.value)

    with session_scope() as session:
        total = session.execute(
            select(func.count()).select_from(WeeklyMealPlanORM).where(*conditions)
        ).scalar_one()
        rows = (
            session.execute(
                select(WeeklyMealPlanORM)
                .where(*conditions)
                .order_by(WeeklyMealPlanORM.created_at.desc(), WeeklyMealPlanORM.id.desc())
                .limit(limit)
                .offset(offset)
            )
            .scalars()
            .all()
        )
        plans = [_assemble(session, row) for row in rows]
        return PlanPage(plans=plans, total=total, limit=limit, offset=offset)


def update_plan(plan_id: int, user_id: int, changes: UpdatePlanRequest) -> WeeklyMealPlan:
    """Apply the fields explicitly set on ``changes``.

    Status may be set to ``archived`` at any time; ``in_progress`` and
    ``completed`` must agree with the slots' lock state.
    """

    provided = changes.model_fields_set
    with session_scope() as session:
        plan_row = _load_plan_row(session, plan_id, user_id, for_update=True)
        if "name" in provided and changes.name is not None:
            plan_row.name = changes.name.strip()
        if "description" in provided:
            plan_row.description = changes.description
        if "global_preferences" in provided:
            plan_row.global_preferences = encode_preferences(changes.global_preferences)
        if "status" in provided and changes.status is not None:
            if changes.status != PlanStatus.ARCHIVED:
                complete = _completion(session, plan_id).is_complete
                if (changes.status == PlanStatus.COMPLETED) != complete:
                    raise PreconditionFailed(
                        "Plan status must be completed exactly when every meal is locked"
                    )
            plan_row.status = changes.status.value
        plan_row.updated_at = _utcnow()
        session.flush()
        return _assemble(session, plan_row)


def delete_plan(plan_id: int, user_id: int) -> None:
    """Remove a plan together with its slots and shopping list; recipes survive."""

    with session_scope() as session:
        plan_row = _load_plan_row(session, plan_id, user_id, for_update=True)
        session.execute(delete(ShoppingListORM).where(ShoppingListORM.plan_id == plan_id))
        session.execute(delete(MealPlanItemORM).where(MealPlanItemORM.plan_id == plan_id))
        session.delete(plan_row)


def get_slots_by_category(
    plan_id: int, user_id: int, category: MealCategory
) -> List[MealPlanItem]:
    with session_scope() as session:
        _load_plan_row(session, plan_id, user_id)
        rows = (
            session.execute(
                select(MealPlanItemORM)
                .where(
                    MealPlanItemORM.plan_id == plan_id,
                    MealPlanItemORM.category == category.value,
                )
                .order_by(MealPlanItemORM.id)
            )
            .scalars()
            .all()
        )
        return _slots_with_recipes(session, rows)


def mark_generating(plan_id: int, slot_id: int, user_id: int) -> MealPlanItem:
    """Move a pending slot to ``generating``."""

    with session_scope() as session:
        _load_plan_row(session, plan_id, user_id)
        row = _load_slot_row(session, plan_id, slot_id)
        check_transition(SlotStatus(row.status), SlotStatus.GENERATING, recipe_id=None)
        _transition_slot(session, slot_id, SlotStatus.PENDING, status=SlotStatus.GENERATING.value)
        session.refresh(row)
        return _slot_to_model(row)


def complete_generation(
    plan_id: int,
    slot_id: int,
    user_id: int,
    recipe: GeneratedRecipe,
    custom_preferences: Optional[MealPreferences],
) -> MealPlanItem:
    """Persist ``recipe`` and attach it to a generating slot in one transaction."""

    with session_scope() as session:
        _load_plan_row(session, plan_id, user_id)
        row = _load_slot_row(session, plan_id, slot_id)
        recipe_row = add_recipe(session, user_id, recipe)
        check_transition(SlotStatus(row.status), SlotStatus.GENERATED, recipe_id=recipe_row.id)
        _transition_slot(
            session,
            slot_id,
            SlotStatus.GENERATING,
            status=SlotStatus.GENERATED.value,
            recipe_id=recipe_row.id,
            custom_preferences=encode_preferences(custom_preferences),
        )
        session.refresh(row)
        return _slots_with_recipes(session, [row])[0]


def revert_generation(slot_id: int) -> bool:
    """Return a ``generating`` slot to ``pending``; False when it was not generating."""

    with session_scope() as session:
        result = session.execute(
            update(MealPlanItemORM)
            .where(
                MealPlanItemORM.id == slot_id,
                MealPlanItemORM.status == SlotStatus.GENERATING.value,
            )
            .values(status=SlotStatus.PENDING.value, updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


def reset_for_regeneration(plan_id: int, slot_id: int, user_id: int) -> MealPlanItem:
    """Detach the recipe of a generated or locked slot and return it to ``pending``."""

    with session_scope() as session:
        plan_row = _load_plan_row(session, plan_id, user_id, for_update=True)
        row = _load_slot_row(session, plan_id, slot_id)
        current = SlotStatus(row.status)
        if needs_reset_for_regeneration(current):
            check_transition(current, SlotStatus.PENDING, recipe_id=None)
            _transition_slot(
                session,
                slot_id,
                current,
                status=SlotStatus.PENDING.value,
                recipe_id=None,
                locked_at=None,
            )
            _reconcile_plan_status(plan_row, _completion(session, plan_id).is_complete)
            session.refresh(row)
        return _slot_to_model(row)


def set_slot_locked(plan_id: int, slot_id: int, user_id: int, locked: bool) -> LockResult:
    """Lock or unlock a slot and reconcile plan status in the same transaction."""

    with session_scope() as session:
        plan_row = _load_plan_row(session, plan_id, user_id, for_update=True)
        row = _load_slot_row(session, plan_id, slot_id)
        current = SlotStatus(row.status)
        if locked:
            check_transition(current, SlotStatus.LOCKED, recipe_id=row.recipe_id)
            _transition_slot(
                session, slot_id, current, status=SlotStatus.LOCKED.value, locked_at=_utcnow()
            )
        else:
            if current != SlotStatus.LOCKED:
                raise PreconditionFailed(f"Meal is not locked (slot is {current.value})")
            check_transition(current, SlotStatus.GENERATED, recipe_id=row.recipe_id)
            _transition_slot(
                session, slot_id, current, status=SlotStatus.GENERATED.value, locked_at=None
            )

        completion = _completion(session, plan_id)
        _reconcile_plan_status(plan_row, completion.is_complete)
        session.flush()
        session.refresh(row)
        category = MealCategory(row.category)
        return LockResult(
            slot=_slots_with_recipes(session, [row])[0],
            category_complete=completion.completion_by_category[category].is_complete,
            plan_complete=completion.is_complete,
            plan_status=PlanStatus(plan_row.status),
        )


def completion_for(plan_id: int, user_id: int) -> PlanCompletion:
    with session_scope() as session:
        _load_plan_row(session, plan_id, user_id)
        return _completion(session, plan_id)


def list_recipe_bearing_slots(plan_id: int, user_id: int) -> List[MealPlanItem]:
    """Generated or locked slots of a plan with their recipes, in creation order."""

    with session_scope() as session:
        _load_plan_row(session, plan_id, user_id)
        rows = (
            session.execute(
                select(MealPlanItemORM)
                .where(
                    MealPlanItemORM.plan_id == plan_id,
                    MealPlanItemORM.status.in_(
                        [SlotStatus.GENERATED.value, SlotStatus.LOCKED.value]
                    ),
                    MealPlanItemORM.recipe_id.is_not(None),
                )
                .order_by(MealPlanItemORM.id)
            )
            .scalars()
            .all()
        )
        return _slots_with_recipes(session, rows)


def archive_completed_before(user_id: int, cutoff: datetime) -> int:
    """Archive the user's completed plans created before ``cutoff`` (naive UTC)."""

    with session_scope() as session:
        result = session.execute(
            update(WeeklyMealPlanORM)
            .where(
                WeeklyMealPlanORM.user_id == user_id,
                WeeklyMealPlanORM.status == PlanStatus.COMPLETED.value,
                WeeklyMealPlanORM.created_at < cutoff,
            )
            .values(status=PlanStatus.ARCHIVED.value, updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


def reset_generating_slots() -> int:
    """Return every slot stuck in ``generating`` to ``pending``."""

    with session_scope() as session:
        result = session.execute(
            update(MealPlanItemORM)
            .where(MealPlanItemORM.status == SlotStatus.GENERATING.value)
            .values(status=SlotStatus.PENDING.value, updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


__all__ = [
    "MAX_PAGE_SIZE",
    "insert_plan",
    "get_plan_with_slots",
    "list_plans",
    "update_plan",
    "delete_plan",
    "get_slots_by_category",
    "mark_generating",
    "complete_generation",
    "revert_generation",
    "reset_for_regeneration",
    "set_slot_locked",
    "completion_for",
    "list_recipe_bearing_slots",
    "archive_completed_before",
    "reset_generating_slots",
]
