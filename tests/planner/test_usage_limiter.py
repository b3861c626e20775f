"""Tests for per-user usage quotas."""

from __future__ import annotations

from datetime import date

from mealweek.planner.usage import (
    MEAL_PLAN_CREATION,
    RECIPE_GENERATION,
    Period,
    UsageLimiter,
    period_start,
)


def test_weekly_period_starts_on_monday():
    assert period_start(Period.WEEKLY, date(2026, 1, 8)) == date(2026, 1, 5)
    assert period_start(Period.WEEKLY, date(2026, 1, 5)) == date(2026, 1, 5)
    assert period_start(Period.DAILY, date(2026, 1, 8)) == date(2026, 1, 8)


def test_check_and_consume_stops_at_the_limit():
    limiter = UsageLimiter({RECIPE_GENERATION: 2}, clock=lambda: date(2026, 1, 8))

    assert limiter.check_and_consume(1, RECIPE_GENERATION)
    assert limiter.check_and_consume(1, RECIPE_GENERATION)
    assert not limiter.check_and_consume(1, RECIPE_GENERATION)
    # Other users have their own counters.
    assert limiter.check_and_consume(2, RECIPE_GENERATION)

    snapshot = limiter.snapshot(1, RECIPE_GENERATION)
    assert snapshot.used == 2
    assert snapshot.limit == 2
    assert snapshot.remaining == 0


def test_counters_reset_with_a_new_period():
    today = {"value": date(2026, 1, 8)}
    limiter = UsageLimiter({RECIPE_GENERATION: 1}, clock=lambda: today["value"])

    assert limiter.check_and_consume(1, RECIPE_GENERATION)
    assert not limiter.check_and_consume(1, RECIPE_GENERATION)

    today["value"] = date(2026, 1, 9)
    assert limiter.check_and_consume(1, RECIPE_GENERATION)


def test_zero_limit_denies_and_negative_limit_is_unlimited():
    limiter = UsageLimiter({RECIPE_GENERATION: 0, MEAL_PLAN_CREATION: -1})

    assert not limiter.check_and_consume(1, RECIPE_GENERATION)
    for _ in range(5):
        assert limiter.check_and_consume(1, MEAL_PLAN_CREATION)

    snapshots = {snapshot.counter: snapshot for snapshot in limiter.snapshots(1)}
    assert snapshots[MEAL_PLAN_CREATION].used == 5
    assert snapshots[MEAL_PLAN_CREATION].limit is None
    assert snapshots[MEAL_PLAN_CREATION].remaining is None
    assert snapshots[RECIPE_GENERATION].used == 0
