"""Domain models for recipe ingredients and their food mappings."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

SYSTEM_MAPPER = "system"


@dataclass(frozen=True)
class IngredientRecord:
    """Ingredient row of a recipe."""

    id: UUID
    recipe_id: UUID
    name: str
    qty: float
    unit: str
    raw_text: str | None = None

    @property
    def line(self) -> str:
        """Ingredient text as the user entered it."""
        if self.raw_text:
            return self.raw_text
        qty = f"{self.qty:g}"
        if self.unit:
            return f"{qty} {self.unit} {self.name}"
        return f"{qty} {self.name}"


@dataclass(frozen=True)
class IngredientFoodMap:
    """Link between an ingredient and a food; deactivated, never deleted."""

    id: UUID
    ingredient_id: UUID
    food_id: UUID
    confidence: float
    is_active: bool
    use_once: bool
    mapped_by: str
    created_at: datetime | None = None


def current_mapping(maps: list[IngredientFoodMap]) -> IngredientFoodMap | None:
    """Return the highest-confidence active mapping, if any."""
    active = [item for item in maps if item.is_active]
    if not active:
        return None
    return max(active, key=lambda item: item.confidence)
