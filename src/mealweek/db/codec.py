"""JSON column encoding helpers."""

from __future__ import annotations

import json
from typing import Any, Optional

from mealweek.models.plan import MealPreferences


def encode_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def decode_json(value: Optional[str], default: Any = None) -> Any:
    if value is None or value == "":
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return default


def encode_preferences(preferences: Optional[MealPreferences]) -> Optional[str]:
    if preferences is None:
        return None
    return encode_json(preferences.model_dump(mode="json", exclude_none=True))


def decode_preferences(value: Optional[str]) -> Optional[MealPreferences]:
    payload = decode_json(value)
    if payload is None:
        return None
    return MealPreferences.model_validate(payload)


__all__ = ["encode_json", "decode_json", "encode_preferences", "decode_preferences"]
