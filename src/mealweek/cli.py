"""Command-line interface for the weekly meal planner."""

from __future__ import annotations

import json
import threading
from typing import Any, List, Optional

import typer
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from mealweek.config import get_settings
from mealweek.errors import MealPlanError, ValidationError
from mealweek.logging_utils import configure_logging
from mealweek.models.nutrition import NutritionProfileUpdate
from mealweek.models.plan import CreatePlanRequest, MealPreferences
from mealweek.planner.orchestrator import MealPlanOrchestrator, build_orchestrator
from mealweek.shopping.consolidator import IngredientConsolidator, format_ingredient

app = typer.Typer(help="Weekly meal plan orchestration commands.")

USER_OPTION = typer.Option(1, "--user-id", help="Acting user id.")
PRETTY_OPTION = typer.Option(False, "--pretty", help="Pretty-print output JSON.")


@app.callback()
def _configure() -> None:
    settings = get_settings()
    configure_logging(
        settings.log_level,
        settings.log_format,
        [settings.api_token or "", settings.recipe_llm_api_key or ""],
    )


def _emit(payload: Any, pretty: bool) -> None:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    elif isinstance(payload, list):
        payload = [
            item.model_dump(mode="json") if isinstance(item, BaseModel) else item
            for item in payload
        ]
    typer.echo(json.dumps(payload, indent=2 if pretty else None, sort_keys=pretty))


def _fail(exc: Exception) -> None:
    if isinstance(exc, ValidationError):
        for message in exc.errors:
            typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    else:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _load_preferences(path: Optional[str]) -> Optional[MealPreferences]:
    if not path:
        return None
    with open(path, "r", encoding="utf-8") as fh:
        return MealPreferences.model_validate(json.load(fh))


def _orchestrator() -> MealPlanOrchestrator:
    return build_orchestrator()


@app.command("create-plan")
def create_plan(
    name: str = typer.Option(..., "--name", help="Plan name."),
    start_date: str = typer.Option(..., "--start", help="Start date (YYYY-MM-DD)."),
    end_date: str = typer.Option(..., "--end", help="End date (YYYY-MM-DD)."),
    breakfast: int = typer.Option(0, "--breakfast", help="Number of breakfasts."),
    lunch: int = typer.Option(0, "--lunch", help="Number of lunches."),
    dinner: int = typer.Option(0, "--dinner", help="Number of dinners."),
    snack: int = typer.Option(0, "--snack", help="Number of snacks."),
    description: Optional[str] = typer.Option(None, "--description"),
    preferences_path: Optional[str] = typer.Option(
        None, "--preferences", help="JSON file with plan-wide preferences."
    ),
    user_id: int = USER_OPTION,
    pretty: bool = PRETTY_OPTION,
) -> None:
    """Create a weekly plan and its pending meals."""

    try:
        request = CreatePlanRequest.model_validate(
            {
                "name": name,
                "description": description,
                "start_date": start_date,
                "end_date": end_date,
                "breakfast_count": breakfast,
                "lunch_count": lunch,
                "dinner_count": dinner,
                "snack_count": snack,
                "global_preferences": _load_preferences(preferences_path),
            }
        )
        plan = _orchestrator().create_plan(user_id, request)
    except (MealPlanError, PydanticValidationError) as exc:
        _fail(exc)
    _emit(plan, pretty)


@app.command("show-plan")
def show_plan(
    plan_id: int = typer.Argument(..., help="Plan id."),
    user_id: int = USER_OPTION,
    pretty: bool = PRETTY_OPTION,
) -> None:
    """Print a plan with its meals and completion."""

    orchestrator = _orchestrator()
    try:
        plan = orchestrator.get_plan(plan_id, user_id)
        upcoming = orchestrator.get_next_category_to_process(plan_id, user_id)
    except MealPlanError as exc:
        _fail(exc)
    payload = plan.model_dump(mode="json")
    payload["next_category"] = upcoming.next_category.value if upcoming.next_category else None
    _emit(payload, pretty)


@app.command()
def generate(
    plan_id: int = typer.Argument(..., help="Plan id."),
    slot_id: int = typer.Argument(..., help="Meal id."),
    regenerate: bool = typer.Option(
        False, "--regenerate", help="Replace an existing recipe instead of filling a pending meal."
    ),
    preferences_path: Optional[str] = typer.Option(
        None, "--preferences", help="JSON file with per-request preference overrides."
    ),
    user_id: int = USER_OPTION,
    pretty: bool = PRETTY_OPTION,
) -> None:
    """Generate (or regenerate) the recipe for one meal."""

    orchestrator = _orchestrator()
    try:
        preferences = _load_preferences(preferences_path)
        if regenerate:
            result = orchestrator.regenerate_slot(plan_id, slot_id, user_id, preferences)
        else:
            result = orchestrator.generate_slot(plan_id, slot_id, user_id, preferences)
    except (MealPlanError, PydanticValidationError) as exc:
        _fail(exc)
    finally:
        orchestrator.close()
    _emit(result, pretty)


@app.command("batch-generate")
def batch_generate(
    plan_id: int = typer.Argument(..., help="Plan id."),
    slot_ids: Optional[List[int]] = typer.Option(
        None, "--slot", help="Meal id to generate (repeatable). Defaults to all pending meals."
    ),
    user_id: int = USER_OPTION,
    pretty: bool = PRETTY_OPTION,
) -> None:
    """Generate meals one by one; Ctrl+C stops after the meal in progress."""

    orchestrator = _orchestrator()
    cancel = threading.Event()
    outcome: dict[str, Any] = {}

    def _run() -> None:
        try:
            outcome["result"] = orchestrator.batch_generate_slots(
                plan_id, user_id, slot_ids=slot_ids or None, cancel_event=cancel
            )
        except MealPlanError as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=_run, name="batch-generate", daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(timeout=0.5)
    except KeyboardInterrupt:
        typer.echo("Cancelling after the current meal…", err=True)
        cancel.set()
        worker.join()
    finally:
        orchestrator.close()

    if "error" in outcome:
        _fail(outcome["error"])
    _emit(outcome["result"], pretty)


@app.command()
def lock(
    plan_id: int = typer.Argument(..., help="Plan id."),
    slot_id: int = typer.Argument(..., help="Meal id."),
    unlock: bool = typer.Option(False, "--unlock", help="Unlock instead of lock."),
    user_id: int = USER_OPTION,
    pretty: bool = PRETTY_OPTION,
) -> None:
    """Lock (or unlock) a generated meal."""

    try:
        result = _orchestrator().lock_slot(plan_id, slot_id, user_id, locked=not unlock)
    except MealPlanError as exc:
        _fail(exc)
    _emit(result, pretty)


@app.command("shopping-list")
def shopping_list(
    plan_id: int = typer.Argument(..., help="Plan id."),
    refresh: bool = typer.Option(False, "--refresh", help="Rebuild from the plan's recipes first."),
    text: bool = typer.Option(False, "--text", help="Print a grouped checklist instead of JSON."),
    user_id: int = USER_OPTION,
    pretty: bool = PRETTY_OPTION,
) -> None:
    """Show (or rebuild) the consolidated shopping list."""

    consolidator = IngredientConsolidator()
    try:
        if refresh:
            view = consolidator.build_or_refresh_shopping_list(plan_id, user_id)
        else:
            view = consolidator.get_shopping_list(plan_id, user_id)
    except MealPlanError as exc:
        _fail(exc)

    if not text:
        _emit(view, pretty)
        return
    for category, items in view.ingredients_by_category.items():
        typer.secho(category.value.capitalize(), bold=True)
        for item in items:
            mark = "x" if item.checked else " "
            typer.echo(f"  [{mark}] {format_ingredient(item)}")
    typer.echo(
        f"{view.stats.checked_items}/{view.stats.total_items} checked "
        f"({view.stats.completion_percentage:g}%)"
    )


@app.command("check-item")
def check_item(
    plan_id: int = typer.Argument(..., help="Plan id."),
    ingredient_name: str = typer.Argument(..., help="Exact ingredient name."),
    uncheck: bool = typer.Option(False, "--uncheck", help="Clear the check mark."),
    user_id: int = USER_OPTION,
    pretty: bool = PRETTY_OPTION,
) -> None:
    """Check off a shopping list ingredient."""

    try:
        view = IngredientConsolidator().set_ingredient_checked(
            plan_id, user_id, ingredient_name, not uncheck
        )
    except MealPlanError as exc:
        _fail(exc)
    _emit(view.stats, pretty)


@app.command()
def archive(
    days_old: Optional[int] = typer.Option(
        None, "--days", help="Archive completed plans older than this many days."
    ),
    user_id: int = USER_OPTION,
    pretty: bool = PRETTY_OPTION,
) -> None:
    """Archive old completed plans."""

    archived = _orchestrator().archive_old_plans(user_id, days_old)
    _emit({"archived": archived}, pretty)


@app.command()
def usage(
    user_id: int = USER_OPTION,
    pretty: bool = PRETTY_OPTION,
) -> None:
    """Show quota usage for the current periods."""

    _emit(_orchestrator().get_usage(user_id), pretty)


@app.command("nutrition-profile")
def nutrition_profile(
    age: Optional[int] = typer.Option(None, "--age"),
    height_cm: Optional[int] = typer.Option(None, "--height", help="Height in cm."),
    weight_kg: Optional[int] = typer.Option(None, "--weight", help="Weight in kg."),
    activity_level: Optional[str] = typer.Option(None, "--activity", help="Activity level."),
    goals: Optional[str] = typer.Option(
        None, "--goal", help="lose_weight, gain_muscle or maintain."
    ),
    daily_calories: Optional[int] = typer.Option(None, "--calories", help="Daily calories."),
    macro_protein: Optional[int] = typer.Option(None, "--protein", help="Daily protein (g)."),
    macro_carbs: Optional[int] = typer.Option(None, "--carbs", help="Daily carbs (g)."),
    macro_fat: Optional[int] = typer.Option(None, "--fat", help="Daily fat (g)."),
    user_id: int = USER_OPTION,
    pretty: bool = PRETTY_OPTION,
) -> None:
    """Show the nutrition profile, or update it when any field is given."""

    changes = {
        "age": age,
        "height_cm": height_cm,
        "weight_kg": weight_kg,
        "activity_level": activity_level,
        "goals": goals,
        "daily_calories": daily_calories,
        "macro_protein": macro_protein,
        "macro_carbs": macro_carbs,
        "macro_fat": macro_fat,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    orchestrator = _orchestrator()
    try:
        if changes:
            profile = orchestrator.set_nutrition_profile(
                user_id, NutritionProfileUpdate.model_validate(changes)
            )
        else:
            profile = orchestrator.get_nutrition_profile(user_id)
    except (MealPlanError, PydanticValidationError) as exc:
        _fail(exc)
    _emit(profile, pretty)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """Run the HTTP API with uvicorn."""

    from mealweek.server.run import serve as run_server

    run_server(host, port, reload=reload)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for `python -m mealweek`."""
    app(prog_name="mealweek", args=argv)


if __name__ == "__main__":
    main()
