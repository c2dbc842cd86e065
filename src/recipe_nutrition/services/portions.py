"""Convert ingredient amounts into grams for a specific food."""

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from recipe_nutrition.domain.foods import FoodCandidate, FoodUnit, PortionOverride
from recipe_nutrition.domain.parsing import ParsedIngredientLine
from recipe_nutrition.services.parser import parse_quantity
from recipe_nutrition.services.units import (
    MASS_GRAMS,
    VOLUME_ML,
    lookup_unit,
    normalize_unit,
)

# Grams per millilitre by food category.
CATEGORY_DENSITIES: dict[str, float] = {
    "oil": 0.91,
    "flour": 0.53,
    "starch": 0.80,
    "whey": 0.50,
    "sugar": 0.85,
    "rice": 0.85,
    "oats": 0.36,
    "liquid": 1.00,
    "powder": 0.55,
    "dairy": 1.03,
    "cheese": 1.10,
    "protein": 1.05,
    "vegetable": 0.95,
    "fruit": 0.95,
    "nut": 0.55,
    "seed": 0.60,
    "grain": 0.80,
    "legume": 0.90,
    "condiment": 1.10,
    "beverage": 1.00,
}

# Checked top to bottom, first match wins.
CATEGORY_KEYWORDS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("oil", re.compile(r"\boil\b")),
    ("whey", re.compile(r"\b(whey|protein powder)\b")),
    ("liquid", re.compile(r"\b(milk|water|broth|stock|juice)\b")),
    ("flour", re.compile(r"\bflour\b")),
    ("starch", re.compile(r"\b(starch|cornstarch)\b")),
    ("sugar", re.compile(r"\bsugar\b")),
    ("rice", re.compile(r"\brice\b")),
    ("oats", re.compile(r"\b(oats?|oatmeal)\b")),
    ("cheese", re.compile(r"\bcheese\b")),
    ("dairy", re.compile(r"\b(yogh?urt|cream|kefir)\b")),
    ("condiment", re.compile(r"\b(sauce|ketchup|mayonnaise|mustard|honey|syrup)\b")),
)

_NON_WORD = re.compile(r"[^\w\s]")

COUNT_LABEL_WORDS = frozenset(
    {"whole", "each", "item", "unit", "serving", "large", "medium", "small", "piece"}
)

# Count-style override units that apply when the line names no unit.
DEFAULT_COUNT_UNITS = frozenset({"whole", "piece", "each", "count", "unit"})

IRREGULAR_SINGULARS: dict[str, str] = {
    "cloves": "clove",
    "leaves": "leaf",
    "whites": "white",
    "yolks": "yolk",
    "pieces": "piece",
    "slices": "slice",
    "stalks": "stalk",
    "ounces": "ounce",
}

DIRECT_MASS_CONFIDENCE = 1.0
USER_OVERRIDE_CONFIDENCE = 1.0
PORTION_OVERRIDE_CONFIDENCE = 0.9
FOOD_UNIT_CONFIDENCE = 0.85
DENSITY_CONFIDENCE = 0.75


class PortionSource(Enum):
    """How a gram amount was obtained."""

    DIRECT_MASS = "direct_mass"
    USER_OVERRIDE = "user_override"
    PORTION_OVERRIDE = "portion_override"
    DENSITY = "density"
    FOOD_UNIT = "food_unit"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class PortionResolution:
    """Gram amount for an ingredient, or ``grams=None`` when unresolved."""

    grams: float | None
    source: PortionSource
    confidence: float
    matched_label: str | None = None

    @property
    def resolved(self) -> bool:
        return self.grams is not None


UNRESOLVED = PortionResolution(
    grams=None, source=PortionSource.UNRESOLVED, confidence=0.0
)


def category_hint_for(name: str | None) -> str | None:
    """Derive a density category from a food or ingredient name."""
    lowered = (name or "").lower()
    for category, pattern in CATEGORY_KEYWORDS:
        if pattern.search(lowered):
            return category
    return None


@dataclass(frozen=True)
class _LineTokens:
    """Singularized words of a parsed line, split by role."""

    words: frozenset[str]
    unit_words: frozenset[str]
    name_words: frozenset[str]


def resolve_portion(
    qty: float,
    unit: str | None,
    *,
    category_hint: str | None = None,
    density_gml: float | None = None,
    units: Sequence[FoodUnit] = (),
    unit_hint: str | None = None,
    qualifiers: Sequence[str] = (),
    multiplier: float = 1.0,
    name: str | None = None,
    overrides: Sequence[PortionOverride] = (),
) -> PortionResolution:
    """Resolve a quantity and unit into grams.

    Tries a direct mass conversion, then the user's portion overrides, then
    the food's portion overrides, then volume times density, then the food's
    named portions. A volume unit without any known density never falls back
    to water.
    """
    amount = qty * multiplier
    if not math.isfinite(amount) or amount <= 0:
        return UNRESOLVED

    normalized = normalize_unit(unit)
    density = _density(density_gml, category_hint)

    if normalized in MASS_GRAMS:
        return _resolution(
            amount * MASS_GRAMS[normalized],
            PortionSource.DIRECT_MASS,
            DIRECT_MASS_CONFIDENCE,
        )

    line = _line_tokens(normalized, unit, unit_hint, qualifiers, name)
    user_overrides = [item for item in overrides if item.user_id is not None]
    food_overrides = [item for item in overrides if item.user_id is None]
    for candidates, source, confidence in (
        (user_overrides, PortionSource.USER_OVERRIDE, USER_OVERRIDE_CONFIDENCE),
        (food_overrides, PortionSource.PORTION_OVERRIDE, PORTION_OVERRIDE_CONFIDENCE),
    ):
        override = _match_override(candidates, line)
        if override is not None:
            return _resolution(
                amount * override.grams,
                source,
                confidence,
                matched_label=override.label or override.unit,
            )

    if normalized == "ml" and density is None:
        return _resolution(amount, PortionSource.DIRECT_MASS, DIRECT_MASS_CONFIDENCE)

    if normalized in VOLUME_ML and density is not None:
        return _resolution(
            amount * VOLUME_ML[normalized] * density,
            PortionSource.DENSITY,
            DENSITY_CONFIDENCE,
        )

    match = match_food_unit(
        units,
        normalized,
        unit_hint=unit_hint,
        qualifiers=qualifiers,
        name_words=line.name_words,
    )
    if match is not None:
        label, per_one = match
        return _resolution(
            amount * per_one,
            PortionSource.FOOD_UNIT,
            FOOD_UNIT_CONFIDENCE,
            matched_label=label,
        )
    return UNRESOLVED


def resolve_parsed(
    parsed: ParsedIngredientLine,
    food: FoodCandidate,
    *,
    category_hint: str | None = None,
) -> PortionResolution:
    """Resolve a parsed line against a mapped food's overrides and portions."""
    hint = (
        category_hint
        or (food.category_id if food.category_id in CATEGORY_DENSITIES else None)
        or category_hint_for(food.name)
        or category_hint_for(parsed.name)
    )
    return resolve_portion(
        parsed.qty,
        parsed.unit,
        category_hint=hint,
        density_gml=food.density_gml,
        units=food.units,
        unit_hint=parsed.unit_hint,
        qualifiers=parsed.qualifiers,
        multiplier=parsed.multiplier,
        name=parsed.name,
        overrides=food.portion_overrides,
    )


def _match_override(
    overrides: Sequence[PortionOverride], line: _LineTokens
) -> PortionOverride | None:
    """First override whose unit (and label, if any) appears in the line."""
    for override in overrides:
        unit = normalize_unit(override.unit)
        if not unit or override.grams <= 0:
            continue
        label = (override.label or "").strip().lower()
        if label and _singular(label) not in line.words:
            continue
        if unit in line.unit_words or unit in line.words:
            return override
        if unit in DEFAULT_COUNT_UNITS and not line.unit_words:
            return override
    return None


def match_food_unit(
    units: Sequence[FoodUnit],
    unit: str,
    *,
    unit_hint: str | None = None,
    qualifiers: Sequence[str] = (),
    name_words: frozenset[str] = frozenset(),
) -> tuple[str, float] | None:
    """Pick the best named portion and return (label, grams per one)."""
    best: tuple[int, FoodUnit] | None = None
    for food_unit in units:
        if food_unit.grams <= 0:
            continue
        score = _label_score(food_unit.label, unit, unit_hint, qualifiers, name_words)
        if score > 0 and (best is None or score > best[0]):
            best = (score, food_unit)
    if best is None:
        return None
    food_unit = best[1]
    per_one = food_unit.grams / _label_quantity(food_unit.label)
    return food_unit.label, per_one


def _label_score(
    label: str,
    unit: str,
    unit_hint: str | None,
    qualifiers: Sequence[str],
    name_words: frozenset[str],
) -> int:
    lowered = label.lower()
    words = lowered.replace(",", " ").split()
    label_units = {lookup_unit(word) or word for word in words}
    score = 0
    if unit:
        if unit in label_units:
            score += 6
    else:
        if label_units & COUNT_LABEL_WORDS:
            score += 1
        # "1 chicken breast" against a "1 breast" portion.
        if _words(label) & name_words:
            score += 2
    if unit_hint and unit_hint.lower() in lowered:
        score += 4
    score += sum(1 for qualifier in qualifiers if qualifier and qualifier in lowered)
    return score


def _line_tokens(
    normalized_unit: str,
    raw_unit: str | None,
    unit_hint: str | None,
    qualifiers: Sequence[str],
    name: str | None,
) -> _LineTokens:
    unit_words = _words(normalized_unit) | _words(raw_unit) | _words(unit_hint)
    qualifier_words = frozenset().union(*(_words(item) for item in qualifiers))
    name_words = _words(name)
    return _LineTokens(
        words=unit_words | qualifier_words | name_words,
        unit_words=unit_words,
        name_words=name_words,
    )


def _words(text: str | None) -> frozenset[str]:
    """Lowercased alphabetic words of ``text`` with their singular forms."""
    words: set[str] = set()
    for word in _NON_WORD.sub(" ", (text or "").lower()).split():
        if word.isdigit():
            continue
        words.add(word)
        words.add(_singular(word))
    return frozenset(words)


def _singular(word: str) -> str:
    if word in IRREGULAR_SINGULARS:
        return IRREGULAR_SINGULARS[word]
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith(("ches", "shes", "sses", "xes", "oes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss") and len(word) > 2:
        return word[:-1]
    return word


def _label_quantity(label: str) -> float:
    """Leading quantity of a portion label ("1/2 cup" -> 0.5), default 1."""
    words = label.split()
    for width in range(min(4, len(words)), 0, -1):
        value = parse_quantity(" ".join(words[:width]))
        if value is not None and value > 0:
            return value
    return 1.0


def _density(density_gml: float | None, category_hint: str | None) -> float | None:
    if density_gml is not None and density_gml > 0:
        return density_gml
    if category_hint:
        return CATEGORY_DENSITIES.get(category_hint)
    return None


def _resolution(
    grams: float,
    source: PortionSource,
    confidence: float,
    matched_label: str | None = None,
) -> PortionResolution:
    if not math.isfinite(grams) or grams <= 0:
        return UNRESOLVED
    return PortionResolution(
        grams=grams, source=source, confidence=confidence, matched_label=matched_label
    )
