"""Dependency definitions for the meal-plan API server."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from mealweek.config import get_settings
from mealweek.planner.orchestrator import MealPlanOrchestrator, build_orchestrator
from mealweek.shopping.consolidator import IngredientConsolidator


@lru_cache
def _default_orchestrator() -> MealPlanOrchestrator:
    return build_orchestrator()


def get_orchestrator() -> MealPlanOrchestrator:
    """Return the process-wide orchestrator built from settings."""

    return _default_orchestrator()


def get_consolidator() -> IngredientConsolidator:
    return IngredientConsolidator()


def reset_default_services() -> None:
    """Drop cached service instances (intended for testing)."""

    if _default_orchestrator.cache_info().currsize:
        _default_orchestrator().close()
    _default_orchestrator.cache_clear()


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-ID"),
) -> int:
    """Resolve the caller from the ``X-User-ID`` header set by the auth proxy."""

    try:
        user_id = int(x_user_id) if x_user_id is not None else 0
    except ValueError:
        user_id = 0
    if user_id <= 0:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user identity")
    return user_id


def require_api_token(
    request: Request,
    settings = Depends(get_settings),
) -> None:
    """Ensure requests carry the configured API token when required."""

    token = settings.api_token
    if not token:
        return

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.split("Bearer ")[-1].strip() == token:
        return

    if request.headers.get("X-API-Key") == token:
        return

    if request.query_params.get("api_token") == token:
        return

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
