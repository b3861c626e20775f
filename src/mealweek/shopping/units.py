"""Unit synonym normalization for shopping list consolidation."""

from __future__ import annotations

UNIT_MAPPINGS: dict[str, str] = {
    # Volume
    "cups": "cup",
    "c": "cup",
    "cup": "cup",
    "tablespoons": "tbsp",
    "tablespoon": "tbsp",
    "tbsp": "tbsp",
    "tbs": "tbsp",
    "teaspoons": "tsp",
    "teaspoon": "tsp",
    "tsp": "tsp",
    "milliliters": "ml",
    "milliliter": "ml",
    "ml": "ml",
    "liters": "l",
    "liter": "l",
    "l": "l",
    "fluid ounces": "fl oz",
    "fluid ounce": "fl oz",
    "fl oz": "fl oz",
    "pints": "pt",
    "pint": "pt",
    "pt": "pt",
    "quarts": "qt",
    "quart": "qt",
    "qt": "qt",
    "gallons": "gal",
    "gallon": "gal",
    "gal": "gal",
    # Weight
    "pounds": "lb",
    "pound": "lb",
    "lb": "lb",
    "lbs": "lb",
    "ounces": "oz",
    "ounce": "oz",
    "oz": "oz",
    "grams": "g",
    "gram": "g",
    "g": "g",
    "kilograms": "kg",
    "kilogram": "kg",
    "kg": "kg",
    # Count
    "pieces": "piece",
    "piece": "piece",
    "pcs": "piece",
    "pc": "piece",
    "items": "item",
    "item": "item",
    "cloves": "clove",
    "clove": "clove",
    "slices": "slice",
    "slice": "slice",
    "strips": "strip",
    "strip": "strip",
    "sprigs": "sprig",
    "sprig": "sprig",
    "leaves": "leaf",
    "leaf": "leaf",
    "stalks": "stalk",
    "stalk": "stalk",
    "heads": "head",
    "head": "head",
    "bunches": "bunch",
    "bunch": "bunch",
    "cans": "can",
    "can": "can",
    # Other
    "pinches": "pinch",
    "pinch": "pinch",
    "dashes": "dash",
    "dash": "dash",
    "drops": "drop",
    "drop": "drop",
    "whole": "whole",
    "halves": "half",
    "half": "half",
    "quarters": "quarter",
    "quarter": "quarter",
}


def normalize_unit(unit: str | None) -> str:
    """Collapse unit synonyms; unknown units come back lower-cased and trimmed."""

    cleaned = (unit or "").strip().lower()
    return UNIT_MAPPINGS.get(cleaned, cleaned)


__all__ = ["UNIT_MAPPINGS", "normalize_unit"]
