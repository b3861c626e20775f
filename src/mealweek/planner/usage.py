"""Per-user usage quotas."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Mapping, Optional

from mealweek.config import Settings, get_settings
from mealweek.db import usage as usage_repo
from mealweek.metrics import QUOTA_DENIALS
from mealweek.models.usage import UsageSnapshot

logger = logging.getLogger(__name__)

RECIPE_GENERATION = "recipe_generation"
MEAL_PLAN_CREATION = "meal_plan_creation"


class Period(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


COUNTER_PERIODS: dict[str, Period] = {
    RECIPE_GENERATION: Period.DAILY,
    MEAL_PLAN_CREATION: Period.WEEKLY,
}


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def period_start(period: Period, today: date) -> date:
    """Daily periods start today; weekly periods start on Monday."""

    if period == Period.WEEKLY:
        return today - timedelta(days=today.weekday())
    return today


class UsageLimiter:
    """Atomic check-and-consume over named per-user counters.

    ``limits`` maps counter names to the allowance per period; a negative or
    missing limit means unlimited.
    """

    def __init__(
        self,
        limits: Mapping[str, Optional[int]],
        *,
        clock: Callable[[], date] = _utc_today,
    ) -> None:
        self._limits = dict(limits)
        self._clock = clock

    def limit_for(self, counter: str) -> Optional[int]:
        limit = self._limits.get(counter)
        if limit is None or limit < 0:
            return None
        return limit

    def _period_start(self, counter: str) -> date:
        return period_start(COUNTER_PERIODS.get(counter, Period.DAILY), self._clock())

    def check_and_consume(self, user_id: int, counter: str) -> bool:
        """Consume one unit of ``counter``; False when the period allowance is used up."""

        allowed = usage_repo.increment_with_ceiling(
            user_id, counter, self._period_start(counter), self.limit_for(counter)
        )
        if not allowed:
            QUOTA_DENIALS.labels(counter=counter).inc()
            logger.info(
                "Usage limit reached",
                extra={"user_id": user_id, "counter": counter},
            )
        return allowed

    def snapshot(self, user_id: int, counter: str) -> UsageSnapshot:
        start = self._period_start(counter)
        used = usage_repo.get_count(user_id, counter, start)
        limit = self.limit_for(counter)
        return UsageSnapshot(
            counter=counter,
            period_start=start,
            used=used,
            limit=limit,
            remaining=None if limit is None else max(limit - used, 0),
        )

    def snapshots(self, user_id: int) -> list[UsageSnapshot]:
        return [self.snapshot(user_id, counter) for counter in COUNTER_PERIODS]


def build_usage_limiter(settings: Settings | None = None) -> UsageLimiter:
    settings = settings or get_settings()
    return UsageLimiter(
        {
            RECIPE_GENERATION: settings.recipe_generation_daily_limit,
            MEAL_PLAN_CREATION: settings.meal_plan_creation_weekly_limit,
        }
    )


__all__ = [
    "RECIPE_GENERATION",
    "MEAL_PLAN_CREATION",
    "COUNTER_PERIODS",
    "Period",
    "period_start",
    "UsageLimiter",
    "build_usage_limiter",
]
