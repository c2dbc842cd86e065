"""Nutrition totals and health score models."""

from dataclasses import dataclass, field
from enum import Enum


class Goal(Enum):
    """Nutrition objective that reweights the health score."""

    GENERAL = "general"
    WEIGHT_LOSS = "weight_loss"
    MUSCLE_GAIN = "muscle_gain"
    MAINTENANCE = "maintenance"


class HealthLabel(Enum):
    """Bucketed health score label."""

    POOR = "poor"
    OK = "ok"
    GOOD = "good"
    GREAT = "great"


@dataclass(frozen=True)
class NutritionTotals:
    """Recipe-level nutrition, recomputed on demand from current mappings."""

    calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    fiber_g: float = 0.0
    sugar_g: float = 0.0
    provisional: bool = False
    provisional_reasons: tuple[str, ...] = ()
    unmapped_count: int = 0
    unresolved_count: int = 0
    low_confidence_share: float = 0.0


@dataclass(frozen=True)
class HealthScore:
    """Score in [0, 100] with its label and per-component breakdown."""

    value: float
    label: HealthLabel
    breakdown: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class RecipeNutrition:
    """Computed nutrition for a recipe."""

    totals: NutritionTotals
    score: HealthScore
    goal: Goal
    unmapped_ingredients: list[str]
