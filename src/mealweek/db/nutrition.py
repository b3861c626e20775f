"""Persistence for per-user nutrition profiles."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select

from mealweek.models.nutrition import NutritionProfile, NutritionProfileUpdate

from .models import NutritionProfileORM
from .repository import session_scope

_PROFILE_FIELDS = tuple(NutritionProfileUpdate.model_fields)


def _to_model(row: NutritionProfileORM) -> NutritionProfile:
    payload = {field: getattr(row, field) for field in _PROFILE_FIELDS}
    return NutritionProfile.model_validate(
        {**payload, "user_id": row.user_id, "updated_at": row.updated_at}
    )


def get_profile(user_id: int) -> Optional[NutritionProfile]:
    with session_scope() as session:
        row = session.execute(
            select(NutritionProfileORM).where(NutritionProfileORM.user_id == user_id)
        ).scalar_one_or_none()
        return _to_model(row) if row is not None else None


def upsert_profile(user_id: int, changes: NutritionProfileUpdate) -> NutritionProfile:
    """Create the user's profile or overwrite the fields present in ``changes``."""

    values = changes.model_dump(mode="json", exclude_unset=True)
    with session_scope() as session:
        row = session.execute(
            select(NutritionProfileORM).where(NutritionProfileORM.user_id == user_id)
        ).scalar_one_or_none()
        if row is None:
            row = NutritionProfileORM(user_id=user_id)
            session.add(row)
        for field, value in values.items():
            setattr(row, field, value)
        session.flush()
        session.refresh(row)
        return _to_model(row)


__all__ = ["get_profile", "upsert_profile"]
