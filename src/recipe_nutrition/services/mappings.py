"""Ingredient to food mappings."""

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from recipe_nutrition.domain.errors import FoodNotFoundError
from recipe_nutrition.domain.mappings import (
    IngredientFoodMap,
    IngredientRecord,
    current_mapping,
)
from recipe_nutrition.services.candidates import FoodRepository

_logger = logging.getLogger(__name__)


class MappingRepository(Protocol):
    """Persistence interface for recipe ingredients and their mappings."""

    def list_ingredients(self, recipe_id: UUID) -> list[IngredientRecord]:
        """Return the ingredients of a recipe."""

    def get_ingredient(self, ingredient_id: UUID) -> IngredientRecord | None:
        """Return an ingredient by id, if present."""

    def list_maps(self, ingredient_ids: Sequence[UUID]) -> list[IngredientFoodMap]:
        """Return all mappings (active and inactive) for the ingredients."""

    def create_map(
        self,
        ingredient_id: UUID,
        food_id: UUID,
        confidence: float,
        mapped_by: str,
        use_once: bool = False,
    ) -> IngredientFoodMap:
        """Create an active mapping and return it."""

    def deactivate_maps(self, ingredient_id: UUID) -> int:
        """Deactivate every active mapping of an ingredient."""


@dataclass
class MappingService:
    """Application service for reading and changing ingredient mappings."""

    repository: MappingRepository
    food_repository: FoodRepository

    def current_maps(
        self, ingredients: Sequence[IngredientRecord]
    ) -> dict[UUID, IngredientFoodMap]:
        """Return the current mapping per ingredient id; unmapped are absent."""
        if not ingredients:
            return {}
        grouped: dict[UUID, list[IngredientFoodMap]] = defaultdict(list)
        for item in self.repository.list_maps([row.id for row in ingredients]):
            grouped[item.ingredient_id].append(item)
        current: dict[UUID, IngredientFoodMap] = {}
        for ingredient_id, maps in grouped.items():
            selected = current_mapping(maps)
            if selected is not None:
                current[ingredient_id] = selected
        return current

    def list_unmapped(self, recipe_id: UUID) -> list[IngredientRecord]:
        """Return ingredients without an active mapping."""
        ingredients = self.repository.list_ingredients(recipe_id)
        current = self.current_maps(ingredients)
        return [row for row in ingredients if row.id not in current]

    def map_ingredient(
        self,
        ingredient_id: UUID,
        food_id: UUID,
        mapped_by: UUID | str,
        confidence: float = 1.0,
        use_once: bool = False,
    ) -> IngredientFoodMap:
        """Replace the ingredient's active mapping with a new one."""
        if self.repository.get_ingredient(ingredient_id) is None:
            raise FoodNotFoundError(f"Ingredient {ingredient_id} not found")
        if not self.food_repository.get_foods([food_id]):
            raise FoodNotFoundError(f"Food {food_id} not found")
        self.repository.deactivate_maps(ingredient_id)
        mapping = self.repository.create_map(
            ingredient_id,
            food_id,
            confidence=min(1.0, max(0.0, confidence)),
            mapped_by=str(mapped_by),
            use_once=use_once,
        )
        _logger.info(
            "Ingredient mapped: ingredient_id=%s food_id=%s mapped_by=%s",
            ingredient_id,
            food_id,
            mapped_by,
        )
        return mapping

    def unmap_ingredient(self, ingredient_id: UUID) -> int:
        """Deactivate all mappings of an ingredient."""
        count = self.repository.deactivate_maps(ingredient_id)
        _logger.info(
            "Ingredient unmapped: ingredient_id=%s deactivated=%s",
            ingredient_id,
            count,
        )
        return count
