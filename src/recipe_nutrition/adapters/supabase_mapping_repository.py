"""Supabase implementation for recipe ingredients and their food mappings."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from recipe_nutrition.domain.mappings import IngredientFoodMap, IngredientRecord
from recipe_nutrition.services.mappings import MappingRepository


@dataclass
class SupabaseMappingRepository(MappingRepository):
    """Supabase-backed repository for ingredient mappings."""

    client: Client

    def list_ingredients(self, recipe_id: UUID) -> list[IngredientRecord]:
        """Return the ingredients of a recipe."""
        response = (
            self.client.table("ingredients")
            .select("*")
            .eq("recipe_id", str(recipe_id))
            .order("position")
            .execute()
        )
        return [_parse_ingredient(row) for row in response.data or []]

    def get_ingredient(self, ingredient_id: UUID) -> IngredientRecord | None:
        """Return an ingredient by id, if present."""
        response = (
            self.client.table("ingredients")
            .select("*")
            .eq("id", str(ingredient_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_ingredient(response.data[0])

    def list_maps(self, ingredient_ids: Sequence[UUID]) -> list[IngredientFoodMap]:
        """Return all mappings for the given ingredients."""
        if not ingredient_ids:
            return []
        response = (
            self.client.table("ingredient_food_maps")
            .select("*")
            .in_("ingredient_id", [str(item) for item in ingredient_ids])
            .execute()
        )
        return [_parse_map(row) for row in response.data or []]

    def create_map(
        self,
        ingredient_id: UUID,
        food_id: UUID,
        confidence: float,
        mapped_by: str,
        use_once: bool = False,
    ) -> IngredientFoodMap:
        """Create an active mapping and return it."""
        response = (
            self.client.table("ingredient_food_maps")
            .insert(
                {
                    "ingredient_id": str(ingredient_id),
                    "food_id": str(food_id),
                    "confidence": confidence,
                    "mapped_by": mapped_by,
                    "use_once": use_once,
                    "is_active": True,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create ingredient mapping")
        return _parse_map(response.data[0])

    def deactivate_maps(self, ingredient_id: UUID) -> int:
        """Deactivate active mappings of an ingredient."""
        response = (
            self.client.table("ingredient_food_maps")
            .update({"is_active": False})
            .eq("ingredient_id", str(ingredient_id))
            .eq("is_active", True)
            .execute()
        )
        return len(response.data or [])


def _parse_ingredient(row: dict[str, object]) -> IngredientRecord:
    """Parse an ingredient row into a domain model."""
    return IngredientRecord(
        id=UUID(str(row["id"])),
        recipe_id=UUID(str(row["recipe_id"])),
        name=str(row.get("name", "")),
        qty=float(row.get("qty") or 0.0),
        unit=str(row.get("unit") or ""),
        raw_text=row.get("raw_text") or None,
    )


def _parse_map(row: dict[str, object]) -> IngredientFoodMap:
    """Parse a mapping row into a domain model."""
    created_raw = row.get("created_at")
    created_at = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else None
    )
    return IngredientFoodMap(
        id=UUID(str(row["id"])),
        ingredient_id=UUID(str(row["ingredient_id"])),
        food_id=UUID(str(row["food_id"])),
        confidence=float(row.get("confidence") or 0.0),
        is_active=bool(row.get("is_active", True)),
        use_once=bool(row.get("use_once", False)),
        mapped_by=str(row.get("mapped_by", "")),
        created_at=created_at,
    )
