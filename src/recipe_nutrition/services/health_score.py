"""Health scoring of recipe nutrition totals relative to a goal."""

import math
from dataclasses import dataclass

from recipe_nutrition.domain.nutrition import (
    Goal,
    HealthLabel,
    HealthScore,
    NutritionTotals,
)


@dataclass(frozen=True)
class MacroSplit:
    """Share of calories from protein, carbs and fat, in percent."""

    protein: float
    carbs: float
    fat: float


GOAL_TARGETS: dict[Goal, MacroSplit] = {
    Goal.GENERAL: MacroSplit(protein=25, carbs=45, fat=30),
    Goal.WEIGHT_LOSS: MacroSplit(protein=35, carbs=35, fat=30),
    Goal.MUSCLE_GAIN: MacroSplit(protein=30, carbs=45, fat=25),
    Goal.MAINTENANCE: MacroSplit(protein=25, carbs=50, fat=25),
}


@dataclass(frozen=True)
class V1Weights:
    protein: float
    carbs: float
    fat: float
    fiber: float
    sugar: float


V1_WEIGHTS: dict[Goal, V1Weights] = {
    Goal.GENERAL: V1Weights(0.3, 0.3, 0.2, 0.1, 0.1),
    Goal.WEIGHT_LOSS: V1Weights(0.4, 0.2, 0.2, 0.15, 0.05),
    Goal.MUSCLE_GAIN: V1Weights(0.5, 0.3, 0.15, 0.05, 0.0),
    Goal.MAINTENANCE: V1Weights(0.3, 0.3, 0.25, 0.1, 0.05),
}


@dataclass(frozen=True)
class V2Weights:
    protein_density: float
    macro_balance: float
    fiber: float
    sugar: float


V2_WEIGHTS: dict[Goal, V2Weights] = {
    Goal.GENERAL: V2Weights(0.35, 0.35, 0.15, 0.15),
    Goal.WEIGHT_LOSS: V2Weights(0.3, 0.3, 0.2, 0.2),
    Goal.MUSCLE_GAIN: V2Weights(0.45, 0.3, 0.1, 0.15),
    Goal.MAINTENANCE: V2Weights(0.3, 0.4, 0.15, 0.15),
}

# Saturation points.
PROTEIN_G_PER_100_KCAL_FULL = 12.0
FIBER_G_PER_1000_KCAL_FULL = 20.0
SUGAR_G_PER_100_KCAL_FREE = 6.0
SUGAR_G_PER_100_KCAL_SPAN = 10.0
MACRO_DISTANCE_ZERO = 120.0

V1_KEYS = ("protein", "carbs", "fat", "fiber", "sugar")
V2_KEYS = ("protein_density", "macro_balance", "fiber", "sugar")


def label_for(value: float) -> HealthLabel:
    """Bucket a 0-100 score into its label."""
    if value >= 80:
        return HealthLabel.GREAT
    if value >= 60:
        return HealthLabel.GOOD
    if value >= 40:
        return HealthLabel.OK
    return HealthLabel.POOR


def score_totals(
    totals: NutritionTotals, goal: Goal = Goal.GENERAL, use_v2: bool = True
) -> HealthScore:
    """Score totals with the scorer version selected by the caller."""
    if use_v2:
        return score_v2(totals, goal)
    return score_v1(totals, goal)


def score_v1(totals: NutritionTotals, goal: Goal = Goal.GENERAL) -> HealthScore:
    """Weighted closeness of each macro's calorie share to the goal targets."""
    if not _has_calories(totals):
        return _empty_score(V1_KEYS)
    targets = GOAL_TARGETS[goal]
    weights = V1_WEIGHTS[goal]
    shares = _calorie_shares(totals)
    breakdown = {
        "protein": _closeness(shares.protein, targets.protein),
        "carbs": _closeness(shares.carbs, targets.carbs),
        "fat": _closeness(shares.fat, targets.fat),
        "fiber": _fiber_score(totals),
        "sugar": 1.0 - _sugar_penalty(totals),
    }
    blended = (
        weights.protein * breakdown["protein"]
        + weights.carbs * breakdown["carbs"]
        + weights.fat * breakdown["fat"]
        + weights.fiber * breakdown["fiber"]
        + weights.sugar * breakdown["sugar"]
    )
    return _finish(blended, breakdown)


def score_v2(totals: NutritionTotals, goal: Goal = Goal.GENERAL) -> HealthScore:
    """Protein density, macro balance, fiber and sugar sub-scores."""
    if not _has_calories(totals):
        return _empty_score(V2_KEYS)
    targets = GOAL_TARGETS[goal]
    weights = V2_WEIGHTS[goal]
    shares = _calorie_shares(totals)
    distance = (
        abs(shares.protein - targets.protein)
        + abs(shares.carbs - targets.carbs)
        + abs(shares.fat - targets.fat)
    )
    breakdown = {
        "protein_density": _clamp(
            totals.protein_g / totals.calories * 100 / PROTEIN_G_PER_100_KCAL_FULL
        ),
        "macro_balance": _clamp(1 - distance / MACRO_DISTANCE_ZERO),
        "fiber": _fiber_score(totals),
        "sugar": 1.0 - _sugar_penalty(totals),
    }
    blended = (
        weights.protein_density * breakdown["protein_density"]
        + weights.macro_balance * breakdown["macro_balance"]
        + weights.fiber * breakdown["fiber"]
        + weights.sugar * breakdown["sugar"]
    )
    return _finish(blended, breakdown)


def _has_calories(totals: NutritionTotals) -> bool:
    return math.isfinite(totals.calories) and totals.calories > 0


def _empty_score(keys: tuple[str, ...]) -> HealthScore:
    return HealthScore(
        value=0.0, label=HealthLabel.POOR, breakdown={key: 0.0 for key in keys}
    )


def _finish(blended: float, breakdown: dict[str, float]) -> HealthScore:
    value = round(blended * 100) if math.isfinite(blended) else 0
    value = float(min(100, max(0, value)))
    return HealthScore(value=value, label=label_for(value), breakdown=breakdown)


def _calorie_shares(totals: NutritionTotals) -> MacroSplit:
    protein_kcal = max(totals.protein_g, 0.0) * 4
    carbs_kcal = max(totals.carbs_g, 0.0) * 4
    fat_kcal = max(totals.fat_g, 0.0) * 9
    macro_kcal = protein_kcal + carbs_kcal + fat_kcal
    if macro_kcal <= 0:
        return MacroSplit(protein=0.0, carbs=0.0, fat=0.0)
    return MacroSplit(
        protein=protein_kcal / macro_kcal * 100,
        carbs=carbs_kcal / macro_kcal * 100,
        fat=fat_kcal / macro_kcal * 100,
    )


def _closeness(actual: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return _clamp(1 - abs(actual - target) / target)


def _fiber_score(totals: NutritionTotals) -> float:
    per_1000_kcal = max(totals.fiber_g, 0.0) / totals.calories * 1000
    return _clamp(per_1000_kcal / FIBER_G_PER_1000_KCAL_FULL)


def _sugar_penalty(totals: NutritionTotals) -> float:
    per_100_kcal = max(totals.sugar_g, 0.0) / totals.calories * 100
    excess = per_100_kcal - SUGAR_G_PER_100_KCAL_FREE
    return _clamp(excess / SUGAR_G_PER_100_KCAL_SPAN)


def _clamp(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))
