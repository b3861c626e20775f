"""Recipe name variety scoring."""

from __future__ import annotations

from typing import Sequence

from rapidfuzz import fuzz, process


def score_variety(recipe_name: str, recent_names: Sequence[str]) -> float:
    """Return 1.0 for a name unlike every recent name, down to 0.0 for a repeat."""

    name = recipe_name.strip().lower()
    choices = [candidate.strip().lower() for candidate in recent_names if candidate and candidate.strip()]
    if not name or not choices:
        return 1.0
    match = process.extractOne(name, choices, scorer=fuzz.WRatio)
    if match is None:
        return 1.0
    return round(max(0.0, 1.0 - match[1] / 100.0), 3)


__all__ = ["score_variety"]
