"""ASGI application for the weekly meal-plan service."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Optional
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field

from mealweek import __version__, metrics
from mealweek.config import Settings, get_settings
from mealweek.errors import (
    GenerationFailed,
    MealPlanError,
    NotFound,
    PreconditionFailed,
    QuotaExceeded,
    ValidationError,
)
from mealweek.logging_utils import configure_logging as configure_app_logging
from mealweek.models.nutrition import NutritionProfile, NutritionProfileUpdate
from mealweek.models.plan import (
    BatchResult,
    CreatePlanRequest,
    LockResult,
    MealPreferences,
    NextCategory,
    PlanCompletion,
    PlanPage,
    PlanStatus,
    SlotGeneration,
    UpdatePlanRequest,
    WeeklyMealPlan,
)
from mealweek.models.recipe import Recipe
from mealweek.models.shopping import ShoppingListView
from mealweek.models.usage import UsageSnapshot
from mealweek.planner.orchestrator import MealPlanOrchestrator
from mealweek.server import deps
from mealweek.shopping.consolidator import IngredientConsolidator

logger = logging.getLogger(__name__)

# Most specific classes first.
_ERROR_STATUS: tuple[tuple[type[MealPlanError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (PreconditionFailed, status.HTTP_409_CONFLICT),
    (QuotaExceeded, status.HTTP_429_TOO_MANY_REQUESTS),
    (GenerationFailed, status.HTTP_502_BAD_GATEWAY),
)


def _json_safe(value: Any) -> Any:
    """Convert non-serializable values into JSON-safe representations."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value.hex()
    if isinstance(value, (list, tuple)):
        return [_json_safe(entry) for entry in value]
    if isinstance(value, dict):
        return {key: _json_safe(sub_value) for key, sub_value in value.items()}
    return repr(value)


def _normalize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Ensure validation error payloads can be serialized to JSON."""

    return [{key: _json_safe(value) for key, value in error.items()} for error in errors]


def _status_for(exc: MealPlanError) -> int:
    for error_type, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def _error_content(exc: MealPlanError) -> dict[str, Any]:
    if isinstance(exc, ValidationError):
        return {"detail": exc.errors}
    content: dict[str, Any] = {"detail": str(exc)}
    if isinstance(exc, QuotaExceeded):
        content["counter"] = exc.counter
        content["limit_reached"] = True
    return content


def _configure_logging(settings: Settings) -> None:
    secrets = [settings.api_token or "", settings.recipe_llm_api_key or ""]
    configure_app_logging(settings.log_level, settings.log_format, secrets)


class GeneratePayload(BaseModel):
    preferences: Optional[MealPreferences] = None


class BatchGeneratePayload(BaseModel):
    slot_ids: Optional[list[int]] = None
    preferences: dict[int, MealPreferences] = Field(default_factory=dict)


class LockPayload(BaseModel):
    locked: bool = True


class IngredientCheckPayload(BaseModel):
    ingredient_name: str = Field(min_length=1)
    checked: bool


class ArchivePayload(BaseModel):
    days_old: Optional[int] = Field(default=None, ge=0)


class ArchiveResponse(BaseModel):
    archived: int


class SavedPayload(BaseModel):
    saved: bool


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="Weekly Meal Planner", version=__version__)
    logger.debug("Application created with log level %s", settings.log_level)

    @application.on_event("startup")
    async def recover_interrupted_generations() -> None:
        provider = application.dependency_overrides.get(
            deps.get_orchestrator, deps.get_orchestrator
        )
        provider().recover_stuck_generations()

    if settings.log_requests:
        access_logger = logging.getLogger("mealweek.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log request/response details without leaking sensitive data."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            start = perf_counter()
            path = request.url.path
            method = request.method
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.exception(
                    "HTTP %s %s status=500 duration_ms=%.2f",
                    method,
                    path,
                    duration_ms,
                    extra={"request_id": request_id},
                )
                metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
                metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                    duration_ms / 1000.0
                )
                raise

            duration_ms = (perf_counter() - start) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )
            metrics.REQUEST_COUNT.labels(
                method=method,
                path=path,
                status=str(response.status_code),
            ).inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
            return response

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        log_kwargs: dict[str, Any] = {}
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            log_kwargs["extra"] = {"request_id": request_id}

        logger.warning(
            "Validation error on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
            **log_kwargs,
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": _normalize_validation_errors(exc.errors())},
        )

    @application.exception_handler(MealPlanError)
    async def meal_plan_error_handler(request: Request, exc: MealPlanError):
        code = _status_for(exc)
        extra = {"request_id": getattr(request.state, "request_id", None)}
        level = logging.WARNING if code >= 500 else logging.INFO
        logger.log(
            level,
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc,
            extra=extra,
        )
        return JSONResponse(status_code=code, content=_error_content(exc))

    @application.post(
        "/meal-plans",
        response_model=WeeklyMealPlan,
        status_code=status.HTTP_201_CREATED,
        summary="Create a weekly meal plan",
    )
    def meal_plans_create(
        payload: CreatePlanRequest,
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> WeeklyMealPlan:
        return orchestrator.create_plan(user_id, payload)

    @application.get("/meal-plans", response_model=PlanPage, summary="List weekly meal plans")
    def meal_plans_list(
        plan_status: Optional[PlanStatus] = Query(default=None, alias="status"),
        limit: int = Query(default=10, ge=1),
        offset: int = Query(default=0, ge=0),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> PlanPage:
        return orchestrator.list_plans(user_id, status=plan_status, limit=limit, offset=offset)

    @application.post(
        "/meal-plans/archive",
        response_model=ArchiveResponse,
        summary="Archive old completed plans",
    )
    def meal_plans_archive(
        payload: Optional[ArchivePayload] = Body(default=None),
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> ArchiveResponse:
        days_old = payload.days_old if payload else None
        return ArchiveResponse(archived=orchestrator.archive_old_plans(user_id, days_old))

    @application.get(
        "/meal-plans/{plan_id}",
        response_model=WeeklyMealPlan,
        summary="Fetch a weekly meal plan with its meals",
    )
    def meal_plans_get(
        plan_id: int,
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> WeeklyMealPlan:
        return orchestrator.get_plan(plan_id, user_id)

    @application.put(
        "/meal-plans/{plan_id}",
        response_model=WeeklyMealPlan,
        summary="Update plan details, preferences or status",
    )
    def meal_plans_update(
        plan_id: int,
        payload: UpdatePlanRequest,
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> WeeklyMealPlan:
        return orchestrator.update_plan(plan_id, user_id, payload)

    @application.delete(
        "/meal-plans/{plan_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete a weekly meal plan",
    )
    def meal_plans_delete(
        plan_id: int,
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> Response:
        orchestrator.delete_plan(plan_id, user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @application.get(
        "/meal-plans/{plan_id}/completion",
        response_model=PlanCompletion,
        summary="Lock progress per category and overall",
    )
    def meal_plans_completion(
        plan_id: int,
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> PlanCompletion:
        return orchestrator.get_plan_completion(plan_id, user_id)

    @application.get(
        "/meal-plans/{plan_id}/next-category",
        response_model=NextCategory,
        summary="Recommended next category to work on",
    )
    def meal_plans_next_category(
        plan_id: int,
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> NextCategory:
        return orchestrator.get_next_category_to_process(plan_id, user_id)

    @application.post(
        "/meal-plans/{plan_id}/meals/generate",
        response_model=BatchResult,
        summary="Generate several meals in order",
    )
    def meals_batch_generate(
        plan_id: int,
        payload: Optional[BatchGeneratePayload] = Body(default=None),
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> BatchResult:
        payload = payload or BatchGeneratePayload()
        return orchestrator.batch_generate_slots(
            plan_id,
            user_id,
            slot_ids=payload.slot_ids,
            preferences=payload.preferences,
        )

    @application.post(
        "/meal-plans/{plan_id}/meals/{slot_id}/generate",
        response_model=SlotGeneration,
        summary="Generate a recipe for one meal",
    )
    def meals_generate(
        plan_id: int,
        slot_id: int,
        payload: Optional[GeneratePayload] = Body(default=None),
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> SlotGeneration:
        preferences = payload.preferences if payload else None
        return orchestrator.generate_slot(plan_id, slot_id, user_id, preferences)

    @application.post(
        "/meal-plans/{plan_id}/meals/{slot_id}/regenerate",
        response_model=SlotGeneration,
        summary="Replace a meal's recipe with a new one",
    )
    def meals_regenerate(
        plan_id: int,
        slot_id: int,
        payload: Optional[GeneratePayload] = Body(default=None),
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> SlotGeneration:
        preferences = payload.preferences if payload else None
        return orchestrator.regenerate_slot(plan_id, slot_id, user_id, preferences)

    @application.put(
        "/meal-plans/{plan_id}/meals/{slot_id}/lock",
        response_model=LockResult,
        summary="Lock or unlock a generated meal",
    )
    def meals_lock(
        plan_id: int,
        slot_id: int,
        payload: Optional[LockPayload] = Body(default=None),
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> LockResult:
        locked = payload.locked if payload else True
        return orchestrator.lock_slot(plan_id, slot_id, user_id, locked)

    @application.post(
        "/meal-plans/{plan_id}/shopping-list",
        response_model=ShoppingListView,
        summary="Build or refresh the plan's shopping list",
    )
    def shopping_list_build(
        plan_id: int,
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        consolidator: IngredientConsolidator = Depends(deps.get_consolidator),
    ) -> ShoppingListView:
        return consolidator.build_or_refresh_shopping_list(plan_id, user_id)

    @application.get(
        "/meal-plans/{plan_id}/shopping-list",
        response_model=ShoppingListView,
        summary="Fetch the plan's shopping list",
    )
    def shopping_list_get(
        plan_id: int,
        user_id: int = Depends(deps.get_current_user_id),
        consolidator: IngredientConsolidator = Depends(deps.get_consolidator),
    ) -> ShoppingListView:
        return consolidator.get_shopping_list(plan_id, user_id)

    @application.patch(
        "/meal-plans/{plan_id}/shopping-list/ingredient",
        response_model=ShoppingListView,
        summary="Check or uncheck a shopping list ingredient",
    )
    def shopping_list_check(
        plan_id: int,
        payload: IngredientCheckPayload,
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        consolidator: IngredientConsolidator = Depends(deps.get_consolidator),
    ) -> ShoppingListView:
        return consolidator.set_ingredient_checked(
            plan_id, user_id, payload.ingredient_name, payload.checked
        )

    @application.get("/usage", response_model=list[UsageSnapshot], summary="Quota usage")
    def usage_get(
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> list[UsageSnapshot]:
        return orchestrator.get_usage(user_id)

    @application.put(
        "/recipes/{recipe_id}/saved",
        response_model=Recipe,
        summary="Save or unsave a recipe",
    )
    def recipes_set_saved(
        recipe_id: int,
        payload: SavedPayload,
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> Recipe:
        return orchestrator.set_recipe_saved(recipe_id, user_id, payload.saved)

    @application.get(
        "/nutrition-profile", response_model=NutritionProfile, summary="Nutrition profile"
    )
    def nutrition_profile_get(
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> NutritionProfile:
        return orchestrator.get_nutrition_profile(user_id)

    @application.put(
        "/nutrition-profile",
        response_model=NutritionProfile,
        summary="Create or update the nutrition profile",
    )
    def nutrition_profile_put(
        payload: NutritionProfileUpdate,
        auth: None = Depends(deps.require_api_token),
        user_id: int = Depends(deps.get_current_user_id),
        orchestrator: MealPlanOrchestrator = Depends(deps.get_orchestrator),
    ) -> NutritionProfile:
        return orchestrator.set_nutrition_profile(user_id, payload)

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    return application


app = create_app()

__all__ = ["app", "create_app"]
