"""Tests for the meal slot lifecycle rules."""

from __future__ import annotations

import pytest

from mealweek.errors import PreconditionFailed
from mealweek.models.plan import SlotStatus
from mealweek.planner.state_machine import (
    can_transition,
    check_transition,
    needs_reset_for_regeneration,
)


@pytest.mark.parametrize(
    "current,target",
    [
        (SlotStatus.PENDING, SlotStatus.GENERATING),
        (SlotStatus.GENERATING, SlotStatus.GENERATED),
        (SlotStatus.GENERATING, SlotStatus.PENDING),
        (SlotStatus.GENERATED, SlotStatus.LOCKED),
        (SlotStatus.GENERATED, SlotStatus.PENDING),
        (SlotStatus.LOCKED, SlotStatus.GENERATED),
        (SlotStatus.LOCKED, SlotStatus.PENDING),
    ],
)
def test_allowed_transitions(current, target):
    assert can_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (SlotStatus.PENDING, SlotStatus.LOCKED),
        (SlotStatus.PENDING, SlotStatus.GENERATED),
        (SlotStatus.GENERATED, SlotStatus.GENERATING),
        (SlotStatus.LOCKED, SlotStatus.GENERATING),
        (SlotStatus.GENERATING, SlotStatus.LOCKED),
    ],
)
def test_rejected_transitions(current, target):
    assert not can_transition(current, target)
    with pytest.raises(PreconditionFailed):
        check_transition(current, target, recipe_id=1)


def test_locking_a_pending_slot_explains_why():
    with pytest.raises(PreconditionFailed, match="without a generated recipe"):
        check_transition(SlotStatus.PENDING, SlotStatus.LOCKED, recipe_id=None)


def test_recipe_states_require_a_recipe():
    with pytest.raises(PreconditionFailed):
        check_transition(SlotStatus.GENERATING, SlotStatus.GENERATED, recipe_id=None)
    with pytest.raises(PreconditionFailed):
        check_transition(SlotStatus.GENERATED, SlotStatus.LOCKED, recipe_id=None)
    check_transition(SlotStatus.GENERATED, SlotStatus.LOCKED, recipe_id=7)


def test_regeneration_reset_rules():
    assert needs_reset_for_regeneration(SlotStatus.GENERATED)
    assert needs_reset_for_regeneration(SlotStatus.LOCKED)
    assert not needs_reset_for_regeneration(SlotStatus.PENDING)
    with pytest.raises(PreconditionFailed, match="already being generated"):
        needs_reset_for_regeneration(SlotStatus.GENERATING)


def test_locking_a_locked_slot_is_reported_as_already_locked():
    with pytest.raises(PreconditionFailed, match="^Meal is already locked$"):
        check_transition(SlotStatus.LOCKED, SlotStatus.LOCKED, recipe_id=3)
