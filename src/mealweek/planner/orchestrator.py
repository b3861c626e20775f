"""Weekly meal plan orchestration: plan lifecycle, slot generation and locking."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import datetime, timedelta, timezone
from typing import List, Mapping, Optional, Sequence

from mealweek.config import Settings, get_settings
from mealweek.db import nutrition as nutrition_repo
from mealweek.db import plans as plans_repo
from mealweek.db import recipes as recipes_repo
from mealweek.errors import (
    GenerationFailed,
    MealPlanError,
    NotFound,
    PreconditionFailed,
    QuotaExceeded,
    ValidationError,
)
from mealweek.llm.gateway import RecipeGenerationGateway, build_recipe_gateway
from mealweek.metrics import GENERATION_LATENCY, PLANS_COMPLETED, SLOT_GENERATIONS
from mealweek.models.generation import GenerationRequest, GenerationResult
from mealweek.models.nutrition import NutritionProfile, NutritionProfileUpdate
from mealweek.models.plan import (
    CATEGORY_ORDER,
    BatchResult,
    CreatePlanRequest,
    LockResult,
    MealCategory,
    MealPlanItem,
    MealPreferences,
    NextCategory,
    PlanCompletion,
    PlanPage,
    PlanStatus,
    SlotGeneration,
    SlotOutcome,
    SlotResult,
    SlotStatus,
    UpdatePlanRequest,
    WeeklyMealPlan,
)
from mealweek.models.recipe import Recipe
from mealweek.models.usage import UsageSnapshot
from mealweek.planner.completion import next_category
from mealweek.planner.preferences import resolve_preferences
from mealweek.planner.state_machine import check_transition, needs_reset_for_regeneration
from mealweek.planner.usage import (
    MEAL_PLAN_CREATION,
    RECIPE_GENERATION,
    UsageLimiter,
    build_usage_limiter,
)

MAX_TOTAL_MEALS = 28
MAX_MEALS_PER_CATEGORY = 7
MAX_NAME_LENGTH = 255
DAYS_PER_WEEK = 7

logger = logging.getLogger(__name__)


def validate_create_request(request: CreatePlanRequest) -> List[str]:
    """Return every violated creation rule (empty when the request is valid)."""

    errors: List[str] = []
    total = request.total_meals
    if total < 1:
        errors.append("At least one meal must be selected")
    if total > MAX_TOTAL_MEALS:
        errors.append(f"Maximum {MAX_TOTAL_MEALS} meals allowed per plan")
    for category in CATEGORY_ORDER:
        count = request.count_for(category)
        if count < 0 or count > MAX_MEALS_PER_CATEGORY:
            errors.append(
                f"{category.value.capitalize()} count must be between 0 and {MAX_MEALS_PER_CATEGORY}"
            )
    if request.end_date <= request.start_date:
        errors.append("End date must be after start date")
    errors.extend(_name_errors(request.name))
    return errors


def _name_errors(name: Optional[str]) -> List[str]:
    if not name or not name.strip():
        return ["Plan name is required"]
    if len(name) > MAX_NAME_LENGTH:
        return [f"Plan name must be {MAX_NAME_LENGTH} characters or less"]
    return []


def plan_slot_layout(request: CreatePlanRequest) -> List[tuple[MealCategory, int]]:
    """Slots in creation order: categories in processing order, days round-robin."""

    return [
        (category, (index % DAYS_PER_WEEK) + 1)
        for category in CATEGORY_ORDER
        for index in range(request.count_for(category))
    ]


def _dedupe(names: Sequence[str]) -> List[str]:
    seen: set[str] = set()
    ordered: List[str] = []
    for name in names:
        key = name.strip().lower()
        if key and key not in seen:
            seen.add(key)
            ordered.append(name.strip())
    return ordered


class MealPlanOrchestrator:
    """Coordinates plan creation, slot generation, locking and completion."""

    def __init__(
        self,
        gateway: RecipeGenerationGateway,
        limiter: UsageLimiter,
        *,
        timeout_seconds: Optional[float] = None,
        variety_history_size: int = 20,
        archive_after_days: int = 30,
    ) -> None:
        self._gateway = gateway
        self._limiter = limiter
        self._timeout = timeout_seconds if timeout_seconds and timeout_seconds > 0 else None
        self._variety_history_size = max(0, variety_history_size)
        self._archive_after_days = archive_after_days
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    # Plan lifecycle -----------------------------------------------------

    def create_plan(self, user_id: int, request: CreatePlanRequest) -> WeeklyMealPlan:
        errors = validate_create_request(request)
        if errors:
            raise ValidationError(errors)
        if not self._limiter.check_and_consume(user_id, MEAL_PLAN_CREATION):
            raise QuotaExceeded(MEAL_PLAN_CREATION, "Weekly meal plan limit reached")

        plan = plans_repo.insert_plan(user_id, request, plan_slot_layout(request))
        logger.info(
            "Created meal plan with %d slots",
            len(plan.slots),
            extra={"user_id": user_id, "plan_id": plan.id},
        )
        return plan

    def get_plan(self, plan_id: int, user_id: int) -> WeeklyMealPlan:
        return plans_repo.get_plan_with_slots(plan_id, user_id)

    def list_plans(
        self,
        user_id: int,
        *,
        status: Optional[PlanStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> PlanPage:
        return plans_repo.list_plans(user_id, status=status, limit=limit, offset=offset)

    def update_plan(
        self, plan_id: int, user_id: int, changes: UpdatePlanRequest
    ) -> WeeklyMealPlan:
        if "name" in changes.model_fields_set:
            errors = _name_errors(changes.name)
            if errors:
                raise ValidationError(errors)
        plan = plans_repo.update_plan(plan_id, user_id, changes)
        logger.info("Updated meal plan", extra={"user_id": user_id, "plan_id": plan_id})
        return plan

    def delete_plan(self, plan_id: int, user_id: int) -> None:
        plans_repo.delete_plan(plan_id, user_id)
        logger.info("Deleted meal plan", extra={"user_id": user_id, "plan_id": plan_id})

    def get_slots_by_category(
        self, plan_id: int, user_id: int, category: MealCategory
    ) -> List[MealPlanItem]:
        return plans_repo.get_slots_by_category(plan_id, user_id, category)

    # Nutrition profile --------------------------------------------------

    def get_nutrition_profile(self, user_id: int) -> NutritionProfile:
        profile = nutrition_repo.get_profile(user_id)
        if profile is None:
            raise NotFound(f"No nutrition profile for user {user_id}")
        return profile

    def set_nutrition_profile(
        self, user_id: int, changes: NutritionProfileUpdate
    ) -> NutritionProfile:
        profile = nutrition_repo.upsert_profile(user_id, changes)
        logger.info("Updated nutrition profile", extra={"user_id": user_id})
        return profile

    # Generation ---------------------------------------------------------

    def generate_slot(
        self,
        plan_id: int,
        slot_id: int,
        user_id: int,
        preferences: Optional[MealPreferences] = None,
    ) -> SlotGeneration:
        """Generate a recipe for a pending slot.

        The slot's state is checked before the daily quota is consumed, so a
        request that cannot succeed never costs a generation.
        """

        plan = self.get_plan(plan_id, user_id)
        slot = self._require_slot(plan, slot_id)
        check_transition(slot.status, SlotStatus.GENERATING, recipe_id=None)
        self._consume_generation(user_id)
        return self._run_generation(plan, slot, user_id, preferences)

    def regenerate_slot(
        self,
        plan_id: int,
        slot_id: int,
        user_id: int,
        preferences: Optional[MealPreferences] = None,
    ) -> SlotGeneration:
        """Discard the slot's recipe (unlocking it if needed) and generate a new one."""

        plan = self.get_plan(plan_id, user_id)
        slot = self._require_slot(plan, slot_id)
        needs_reset = needs_reset_for_regeneration(slot.status)
        self._consume_generation(user_id)
        if needs_reset:
            slot = plans_repo.reset_for_regeneration(plan_id, slot_id, user_id)
            logger.info(
                "Reset meal for regeneration",
                extra={"user_id": user_id, "plan_id": plan_id, "slot_id": slot_id},
            )
            plan = self.get_plan(plan_id, user_id)
            slot = self._require_slot(plan, slot_id)
        return self._run_generation(plan, slot, user_id, preferences)

    def batch_generate_slots(
        self,
        plan_id: int,
        user_id: int,
        *,
        slot_ids: Optional[Sequence[int]] = None,
        preferences: Optional[Mapping[int, MealPreferences]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        """Generate slots one at a time in creation order.

        ``slot_ids=None`` targets every pending slot. The loop stops at the
        first quota denial (``limit_reached``) or when ``cancel_event`` is set
        (``cancelled``); slots after that point are left untouched and have no
        entry in the result.
        """

        plan = self.get_plan(plan_id, user_id)
        targets = self._batch_targets(plan, slot_ids)
        overrides = dict(preferences or {})
        results: List[SlotResult] = []
        limit_reached = False
        cancelled = False

        for slot_id in targets:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break
            slot = self._require_slot(plan, slot_id)
            if slot.status != SlotStatus.PENDING:
                results.append(
                    SlotResult(
                        slot_id=slot_id,
                        outcome=SlotOutcome.SKIPPED,
                        error=f"Meal is {slot.status.value}",
                    )
                )
                continue
            if not self._limiter.check_and_consume(user_id, RECIPE_GENERATION):
                limit_reached = True
                break
            try:
                generation = self._run_generation(plan, slot, user_id, overrides.get(slot_id))
            except NotFound:
                raise
            except (GenerationFailed, PreconditionFailed) as exc:
                results.append(
                    SlotResult(slot_id=slot_id, outcome=SlotOutcome.FAILED, error=str(exc))
                )
                continue
            except Exception as exc:
                logger.exception(
                    "Unexpected error while generating meal",
                    extra={"user_id": user_id, "plan_id": plan_id, "slot_id": slot_id},
                )
                results.append(
                    SlotResult(slot_id=slot_id, outcome=SlotOutcome.FAILED, error=str(exc))
                )
                continue
            results.append(
                SlotResult(
                    slot_id=slot_id,
                    outcome=SlotOutcome.SUCCESS,
                    recipe=generation.slot.recipe,
                )
            )
            plan = self.get_plan(plan_id, user_id)

        batch = BatchResult(results=results, limit_reached=limit_reached, cancelled=cancelled)
        logger.info(
            "Batch generation finished: %d succeeded, %d failed, %d of %d slots processed%s",
            batch.succeeded,
            batch.failed,
            len(results),
            len(targets),
            " (limit reached)" if limit_reached else " (cancelled)" if cancelled else "",
            extra={"user_id": user_id, "plan_id": plan_id},
        )
        return batch

    # Locking and completion -------------------------------------------

    def lock_slot(self, plan_id: int, slot_id: int, user_id: int, locked: bool = True) -> LockResult:
        result = plans_repo.set_slot_locked(plan_id, slot_id, user_id, locked)
        context = {"user_id": user_id, "plan_id": plan_id, "slot_id": slot_id}
        logger.info("%s meal", "Locked" if locked else "Unlocked", extra=context)
        if locked and result.plan_complete and result.plan_status == PlanStatus.COMPLETED:
            PLANS_COMPLETED.inc()
            logger.info("Meal plan completed", extra=context)
        return result

    def get_plan_completion(self, plan_id: int, user_id: int) -> PlanCompletion:
        return plans_repo.completion_for(plan_id, user_id)

    def get_next_category_to_process(self, plan_id: int, user_id: int) -> NextCategory:
        return next_category(self.get_plan_completion(plan_id, user_id))

    # Housekeeping -------------------------------------------------------

    def archive_old_plans(self, user_id: int, days_old: Optional[int] = None) -> int:
        if days_old is None:
            days_old = self._archive_after_days
        cutoff = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=days_old)
        archived = plans_repo.archive_completed_before(user_id, cutoff)
        if archived:
            logger.info("Archived %d completed meal plans", archived, extra={"user_id": user_id})
        return archived

    def recover_stuck_generations(self) -> int:
        recovered = plans_repo.reset_generating_slots()
        if recovered:
            logger.warning("Returned %d interrupted generations to pending", recovered)
        return recovered

    def get_usage(self, user_id: int) -> List[UsageSnapshot]:
        return self._limiter.snapshots(user_id)

    def set_recipe_saved(self, recipe_id: int, user_id: int, saved: bool) -> Recipe:
        return recipes_repo.set_recipe_saved(recipe_id, user_id, saved)

    def close(self) -> None:
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None

    # Internals ------------------------------------------------------------

    @staticmethod
    def _require_slot(plan: WeeklyMealPlan, slot_id: int) -> MealPlanItem:
        slot = plan.slot(slot_id)
        if slot is None:
            raise NotFound(f"Meal {slot_id} not found in plan {plan.id}")
        return slot

    @staticmethod
    def _batch_targets(plan: WeeklyMealPlan, slot_ids: Optional[Sequence[int]]) -> List[int]:
        if slot_ids is None:
            return [slot.id for slot in plan.slots if slot.status == SlotStatus.PENDING]
        requested = set(slot_ids)
        known = {slot.id for slot in plan.slots}
        missing = sorted(requested - known)
        if missing:
            raise NotFound(
                f"Meals {', '.join(str(slot_id) for slot_id in missing)} not found in plan {plan.id}"
            )
        return [slot.id for slot in plan.slots if slot.id in requested]

    def _consume_generation(self, user_id: int) -> None:
        if not self._limiter.check_and_consume(user_id, RECIPE_GENERATION):
            raise QuotaExceeded(RECIPE_GENERATION, "Daily recipe generation limit reached")

    def _variety_hints(self, plan: WeeklyMealPlan, user_id: int) -> List[str]:
        in_plan = [slot.recipe.name for slot in plan.slots if slot.recipe is not None]
        recent = recipes_repo.list_recent_recipe_names(user_id, self._variety_history_size)
        return _dedupe([*in_plan, *recent])

    def _build_request(
        self,
        plan: WeeklyMealPlan,
        slot: MealPlanItem,
        user_id: int,
        effective: MealPreferences,
    ) -> GenerationRequest:
        profile = nutrition_repo.get_profile(user_id)
        return GenerationRequest(
            meal_type=slot.category,
            nutrition_targets=profile.meal_targets() if profile else None,
            user_profile=profile.generation_profile() if profile else None,
            allergies=list(effective.allergies or []),
            dietary_restrictions=list(effective.dietary_restrictions or []),
            cuisine_preferences=list(effective.cuisine_preferences or []),
            max_prep_time=effective.max_prep_time,
            max_cook_time=effective.max_cook_time,
            difficulty_level=effective.difficulty_level,
            variety_hints=self._variety_hints(plan, user_id),
        )

    def _run_generation(
        self,
        plan: WeeklyMealPlan,
        slot: MealPlanItem,
        user_id: int,
        preferences: Optional[MealPreferences],
    ) -> SlotGeneration:
        effective = resolve_preferences(preferences, slot.custom_preferences, plan.global_preferences)
        request = self._build_request(plan, slot, user_id, effective)
        context = {"user_id": user_id, "plan_id": plan.id, "slot_id": slot.id}

        plans_repo.mark_generating(plan.id, slot.id, user_id)
        logger.debug("Generating %s recipe", slot.category.value, extra=context)
        completed = False
        try:
            result = self._call_gateway(request)
            missing = result.recipe.missing_fields()
            if missing:
                raise GenerationFailed(
                    f"Generated recipe is incomplete (missing {', '.join(missing)})"
                )
            item = plans_repo.complete_generation(
                plan.id, slot.id, user_id, result.recipe, effective
            )
            completed = True
        except GenerationFailed as exc:
            SLOT_GENERATIONS.labels(outcome="failed").inc()
            logger.warning("Recipe generation failed: %s", exc, extra=context)
            raise
        finally:
            if not completed and plans_repo.revert_generation(slot.id):
                logger.debug("Returned meal to pending", extra=context)

        SLOT_GENERATIONS.labels(outcome="success").inc()
        logger.info("Generated recipe %s", item.recipe_id, extra=context)
        return SlotGeneration(
            slot=item,
            confidence=result.confidence,
            variety_score=result.variety_score,
            nutrition_accuracy=result.nutrition_accuracy,
        )

    def _ensure_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=4, thread_name_prefix="recipe-gateway"
                )
            return self._executor

    def _call_gateway(self, request: GenerationRequest) -> GenerationResult:
        with GENERATION_LATENCY.time():
            try:
                if self._timeout is None:
                    return self._gateway.generate(request)
                future = self._ensure_executor().submit(self._gateway.generate, request)
                return future.result(timeout=self._timeout)
            except FutureTimeout as exc:
                # Only a call still queued behind busy workers can be cancelled.
                future.cancel()
                raise GenerationFailed(
                    f"Recipe generation timed out after {self._timeout:g}s"
                ) from exc
            except MealPlanError:
                raise
            except Exception as exc:
                logger.exception("Recipe gateway raised an unexpected error")
                raise GenerationFailed(f"Recipe generation failed: {exc}") from exc


def build_orchestrator(
    settings: Settings | None = None,
    *,
    gateway: RecipeGenerationGateway | None = None,
    limiter: UsageLimiter | None = None,
) -> MealPlanOrchestrator:
    settings = settings or get_settings()
    return MealPlanOrchestrator(
        gateway or build_recipe_gateway(settings),
        limiter or build_usage_limiter(settings),
        timeout_seconds=settings.generation_timeout_seconds,
        variety_history_size=settings.variety_history_size,
        archive_after_days=settings.archive_after_days,
    )


__all__ = [
    "MAX_TOTAL_MEALS",
    "MAX_MEALS_PER_CATEGORY",
    "validate_create_request",
    "plan_slot_layout",
    "MealPlanOrchestrator",
    "build_orchestrator",
]
