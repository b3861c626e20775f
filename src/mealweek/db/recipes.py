"""Data access helpers for generated recipes."""

from __future__ import annotations

from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from mealweek.errors import NotFound
from mealweek.models.recipe import GeneratedRecipe, Recipe

from .codec import decode_json, encode_json
from .models import RecipeORM
from .repository import session_scope


def _to_model(row: RecipeORM) -> Recipe:
    return Recipe.model_validate(
        {
            "id": row.id,
            "user_id": row.user_id,
            "name": row.name,
            "description": row.description,
            "ingredients": decode_json(row.ingredients, []),
            "instructions": decode_json(row.instructions, []),
            "nutrition": decode_json(row.nutrition, {}),
            "prep_time": row.prep_time,
            "cook_time": row.cook_time,
            "servings": row.servings,
            "difficulty": row.difficulty,
            "cuisine_type": row.cuisine_type,
            "meal_type": row.meal_type,
            "tags": decode_json(row.tags, []),
            "is_saved": row.is_saved,
            "created_at": row.created_at,
        }
    )


def add_recipe(session: Session, user_id: int, recipe: GeneratedRecipe) -> RecipeORM:
    """Stage a generated recipe for insertion within the caller's transaction."""

    row = RecipeORM(
        user_id=user_id,
        name=recipe.name.strip()[:255],
        description=recipe.description.strip(),
        ingredients=encode_json([item.model_dump() for item in recipe.ingredients]),
        instructions=encode_json([step.strip() for step in recipe.instructions if step.strip()]),
        nutrition=encode_json(recipe.nutrition.model_dump() if recipe.nutrition else {}),
        prep_time=recipe.prep_time,
        cook_time=recipe.cook_time,
        servings=recipe.servings,
        difficulty=recipe.difficulty,
        cuisine_type=recipe.cuisine_type,
        meal_type=recipe.meal_type,
        tags=encode_json(list(recipe.tags)),
        is_saved=False,
    )
    session.add(row)
    session.flush()
    return row


def load_recipes(session: Session, recipe_ids: Iterable[int]) -> dict[int, Recipe]:
    ids = {recipe_id for recipe_id in recipe_ids if recipe_id is not None}
    if not ids:
        return {}
    rows = session.execute(select(RecipeORM).where(RecipeORM.id.in_(ids))).scalars().all()
    return {row.id: _to_model(row) for row in rows}


def recipe_from_row(row: RecipeORM) -> Recipe:
    return _to_model(row)


def get_recipe(recipe_id: int, user_id: int) -> Recipe:
    with session_scope() as session:
        row = session.get(RecipeORM, recipe_id)
        if row is None or row.user_id != user_id:
            raise NotFound(f"Recipe {recipe_id} not found")
        return _to_model(row)


def list_recent_recipe_names(user_id: int, limit: int = 20) -> List[str]:
    """Return the user's most recent recipe names, newest first."""

    if limit <= 0:
        return []
    with session_scope() as session:
        names = (
            session.execute(
                select(RecipeORM.name)
                .where(RecipeORM.user_id == user_id)
                .order_by(RecipeORM.created_at.desc(), RecipeORM.id.desc())
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return list(names)


def set_recipe_saved(recipe_id: int, user_id: int, saved: bool) -> Recipe:
    with session_scope() as session:
        row = session.get(RecipeORM, recipe_id)
        if row is None or row.user_id != user_id:
            raise NotFound(f"Recipe {recipe_id} not found")
        row.is_saved = bool(saved)
        session.flush()
        return _to_model(row)


__all__ = [
    "add_recipe",
    "load_recipes",
    "recipe_from_row",
    "get_recipe",
    "list_recent_recipe_names",
    "set_recipe_saved",
]
