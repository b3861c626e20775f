"""Usage counter persistence with an atomic increment-with-ceiling."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from .models import UsageCounterORM
from .repository import session_scope


def _try_increment(user_id: int, counter: str, period_start: date, ceiling: Optional[int]) -> bool:
    with session_scope() as session:
        stmt = update(UsageCounterORM).where(
            UsageCounterORM.user_id == user_id,
            UsageCounterORM.counter == counter,
            UsageCounterORM.period_start == period_start,
        )
        if ceiling is not None:
            stmt = stmt.where(UsageCounterORM.count < ceiling)
        result = session.execute(
            stmt.values(count=UsageCounterORM.count + 1).execution_options(
                synchronize_session=False
            )
        )
        if result.rowcount == 1:
            return True

        exists = session.execute(
            select(UsageCounterORM.id).where(
                UsageCounterORM.user_id == user_id,
                UsageCounterORM.counter == counter,
                UsageCounterORM.period_start == period_start,
            )
        ).scalar_one_or_none()
        if exists is not None:
            return False
        if ceiling is not None and ceiling < 1:
            return False
        session.add(
            UsageCounterORM(user_id=user_id, counter=counter, period_start=period_start, count=1)
        )
        session.flush()
        return True


def increment_with_ceiling(
    user_id: int, counter: str, period_start: date, ceiling: Optional[int]
) -> bool:
    """Increment the counter unless it already reached ``ceiling``.

    Returns True when the increment happened. ``ceiling=None`` means unlimited.
    The check and the increment are one conditional UPDATE; a first use of the
    period inserts the row and, if a concurrent caller inserted it first, the
    operation is retried once against the now-existing row.
    """

    try:
        return _try_increment(user_id, counter, period_start, ceiling)
    except IntegrityError:
        return _try_increment(user_id, counter, period_start, ceiling)


def get_count(user_id: int, counter: str, period_start: date) -> int:
    with session_scope() as session:
        value = session.execute(
            select(UsageCounterORM.count).where(
                UsageCounterORM.user_id == user_id,
                UsageCounterORM.counter == counter,
                UsageCounterORM.period_start == period_start,
            )
        ).scalar_one_or_none()
        return int(value or 0)


__all__ = ["increment_with_ceiling", "get_count"]
