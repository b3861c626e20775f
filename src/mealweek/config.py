"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/mealweek.db"),
        description="SQLite database location.",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token required for mutating endpoints.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )
    recipe_generation_daily_limit: int = Field(
        default=10,
        description="Recipe generations allowed per user per day (-1 for unlimited).",
    )
    meal_plan_creation_weekly_limit: int = Field(
        default=2,
        description="Weekly meal plans a user may create per ISO week (-1 for unlimited).",
    )
    generation_timeout_seconds: float = Field(
        default=60.0,
        description="Caller-side timeout for a single recipe generation (0 disables).",
    )
    recipe_llm_base_url: Optional[str] = Field(
        default=None,
        description="Recipe LLM base URL (OpenAI-compatible or Ollama). Mock gateway when unset.",
    )
    recipe_llm_model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier passed to the recipe LLM endpoint.",
    )
    recipe_llm_provider: str = Field(
        default="openai",
        description="Recipe LLM provider (openai or ollama).",
    )
    recipe_llm_temperature: float = Field(
        default=0.7,
        description="Sampling temperature for recipe generation.",
    )
    recipe_llm_max_tokens: int = Field(
        default=1500,
        description="Maximum tokens to request from the recipe LLM.",
    )
    recipe_llm_api_key: Optional[str] = Field(
        default=None,
        description="API key sent as a bearer token to the recipe LLM endpoint.",
    )
    variety_history_size: int = Field(
        default=20,
        description="Number of recent recipe names passed to the generator as variety hints.",
    )
    archive_after_days: int = Field(
        default=30,
        description="Completed plans older than this many days are eligible for archiving.",
    )

    model_config = ConfigDict(frozen=True)


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip()
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


_NUMERIC_FIELDS: dict[str, tuple[str, Callable[[str], object]]] = {
    "MEALWEEK_RECIPE_GENERATION_DAILY_LIMIT": ("recipe_generation_daily_limit", int),
    "MEALWEEK_MEAL_PLAN_CREATION_WEEKLY_LIMIT": ("meal_plan_creation_weekly_limit", int),
    "MEALWEEK_GENERATION_TIMEOUT": ("generation_timeout_seconds", float),
    "MEALWEEK_LLM_TEMPERATURE": ("recipe_llm_temperature", float),
    "MEALWEEK_LLM_MAX_TOKENS": ("recipe_llm_max_tokens", int),
    "MEALWEEK_VARIETY_HISTORY_SIZE": ("variety_history_size", int),
    "MEALWEEK_ARCHIVE_AFTER_DAYS": ("archive_after_days", int),
}


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (db_path := _env("MEALWEEK_DATABASE_PATH")):
        payload["database_path"] = Path(db_path)
    if (api_token := _env("MEALWEEK_API_TOKEN")):
        payload["api_token"] = api_token
    if (log_level := _env("MEALWEEK_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("MEALWEEK_LOG_FORMAT")):
        payload["log_format"] = log_format
    if (log_requests := _env("MEALWEEK_LOG_REQUESTS")):
        payload["log_requests"] = _coerce_bool(log_requests)
    if (llm_base_url := _env("MEALWEEK_LLM_BASE_URL")):
        payload["recipe_llm_base_url"] = llm_base_url
    if (llm_model := _env("MEALWEEK_LLM_MODEL")):
        payload["recipe_llm_model"] = llm_model
    if (llm_provider := _env("MEALWEEK_LLM_PROVIDER")):
        payload["recipe_llm_provider"] = llm_provider
    if (llm_api_key := _env("MEALWEEK_LLM_API_KEY")):
        payload["recipe_llm_api_key"] = llm_api_key
    for env_key, (field_name, cast) in _NUMERIC_FIELDS.items():
        raw = _env(env_key)
        if not raw:
            continue
        try:
            payload[field_name] = cast(raw)
        except ValueError:
            pass
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
