"""Sum per-ingredient nutrition into recipe totals."""

import math
from collections.abc import Iterable
from dataclasses import dataclass

from recipe_nutrition.domain.foods import FoodCandidate
from recipe_nutrition.domain.mappings import IngredientFoodMap
from recipe_nutrition.domain.nutrition import NutritionTotals
from recipe_nutrition.services.portions import PortionResolution

REASON_UNMAPPED = "unmapped_ingredients"
REASON_UNRESOLVED = "unresolved_portions"
REASON_LOW_CONFIDENCE = "low_confidence_share"


@dataclass(frozen=True)
class IngredientContribution:
    """One ingredient as seen by the aggregator.

    ``mapping`` and ``food`` are ``None`` for an unmapped ingredient.
    """

    ingredient_name: str
    mapping: IngredientFoodMap | None = None
    food: FoodCandidate | None = None
    portion: PortionResolution | None = None

    @property
    def mapped(self) -> bool:
        return self.mapping is not None and self.food is not None


@dataclass(frozen=True)
class _Scaled:
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    fiber_g: float
    sugar_g: float


def aggregate_totals(
    contributions: Iterable[IngredientContribution],
    *,
    low_confidence_threshold: float = 0.5,
    low_confidence_share_limit: float = 0.3,
    unresolved_portion_grams: float | None = None,
) -> NutritionTotals:
    """Aggregate ingredient contributions into recipe totals.

    Unmapped ingredients add nothing and mark the total provisional. An
    unresolved portion is excluded unless ``unresolved_portion_grams`` is
    given, in which case that amount is used and the total stays
    provisional. The result does not depend on iteration order.
    """
    scaled: list[_Scaled] = []
    low_confidence_calories: list[float] = []
    unmapped = 0
    unresolved = 0

    for item in contributions:
        if not item.mapped:
            unmapped += 1
            continue
        grams = item.portion.grams if item.portion is not None else None
        if grams is None:
            unresolved += 1
            grams = unresolved_portion_grams
            if grams is None:
                continue
        values = _scale(item.food, grams)
        scaled.append(values)
        mapping = item.mapping
        if mapping.use_once or mapping.confidence < low_confidence_threshold:
            low_confidence_calories.append(values.calories)

    calories = math.fsum(item.calories for item in scaled)
    low_share = 0.0
    if calories > 0:
        low_share = math.fsum(low_confidence_calories) / calories

    reasons: list[str] = []
    if unmapped:
        reasons.append(REASON_UNMAPPED)
    if unresolved:
        reasons.append(REASON_UNRESOLVED)
    if low_share >= low_confidence_share_limit and low_confidence_calories:
        reasons.append(REASON_LOW_CONFIDENCE)

    return NutritionTotals(
        calories=calories,
        protein_g=math.fsum(item.protein_g for item in scaled),
        carbs_g=math.fsum(item.carbs_g for item in scaled),
        fat_g=math.fsum(item.fat_g for item in scaled),
        fiber_g=math.fsum(item.fiber_g for item in scaled),
        sugar_g=math.fsum(item.sugar_g for item in scaled),
        provisional=bool(reasons),
        provisional_reasons=tuple(reasons),
        unmapped_count=unmapped,
        unresolved_count=unresolved,
        low_confidence_share=low_share,
    )


def _scale(food: FoodCandidate, grams: float) -> _Scaled:
    factor = grams / 100
    return _Scaled(
        calories=max(food.kcal100, 0.0) * factor,
        protein_g=max(food.protein100, 0.0) * factor,
        carbs_g=max(food.carbs100, 0.0) * factor,
        fat_g=max(food.fat100, 0.0) * factor,
        fiber_g=max(food.fiber100 or 0.0, 0.0) * factor,
        sugar_g=max(food.sugar100 or 0.0, 0.0) * factor,
    )
