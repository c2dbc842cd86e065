"""Unit vocabulary and fixed conversion factors."""

from enum import Enum


class UnitKind(Enum):
    """Kind of a normalized unit."""

    MASS = "mass"
    VOLUME = "volume"
    COUNT = "count"


# Synonym -> normalized unit.
UNIT_SYNONYMS: dict[str, str] = {
    "g": "g",
    "gr": "g",
    "gram": "g",
    "grams": "g",
    "gramme": "g",
    "grammes": "g",
    "kg": "kg",
    "kgs": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
    "mg": "mg",
    "milligram": "mg",
    "milligrams": "mg",
    "oz": "oz",
    "ounce": "oz",
    "ounces": "oz",
    "lb": "lb",
    "lbs": "lb",
    "pound": "lb",
    "pounds": "lb",
    "tsp": "tsp",
    "tsps": "tsp",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "tbsp": "tbsp",
    "tbsps": "tbsp",
    "tbs": "tbsp",
    "tbl": "tbsp",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "cup": "cup",
    "cups": "cup",
    "ml": "ml",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "l": "l",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "floz": "floz",
    "fl oz": "floz",
    "fluid ounce": "floz",
    "fluid ounces": "floz",
    "pinch": "pinch",
    "pinches": "pinch",
    "dash": "dash",
    "dashes": "dash",
    "large": "large",
    "medium": "medium",
    "small": "small",
    "piece": "piece",
    "pieces": "piece",
    "slice": "slice",
    "slices": "slice",
    "block": "block",
    "blocks": "block",
    "scoop": "scoop",
    "scoops": "scoop",
    "can": "can",
    "cans": "can",
    "bar": "bar",
    "bars": "bar",
}

MASS_GRAMS: dict[str, float] = {
    "g": 1.0,
    "kg": 1000.0,
    "mg": 0.001,
    "oz": 28.3495,
    "lb": 453.592,
}

VOLUME_ML: dict[str, float] = {
    "ml": 1.0,
    "l": 1000.0,
    "tsp": 4.92892,
    "tbsp": 14.7868,
    "cup": 240.0,
    "floz": 29.5735,
    "pinch": 0.31,
    "dash": 0.62,
}

COUNT_UNITS = frozenset(
    {"large", "medium", "small", "piece", "slice", "block", "scoop", "can", "bar"}
)


def normalize_unit(raw: str | None) -> str:
    """Map a unit as typed to its normalized form; unknown units pass through."""
    token = (raw or "").strip().lower().rstrip(".")
    return UNIT_SYNONYMS.get(token, token)


def lookup_unit(raw: str) -> str | None:
    """Return the normalized unit for a known synonym, else None."""
    return UNIT_SYNONYMS.get(raw.strip().lower().rstrip("."))


def unit_kind(unit: str) -> UnitKind | None:
    """Classify a normalized unit."""
    if unit in MASS_GRAMS:
        return UnitKind.MASS
    if unit in VOLUME_ML:
        return UnitKind.VOLUME
    if unit in COUNT_UNITS:
        return UnitKind.COUNT
    return None
