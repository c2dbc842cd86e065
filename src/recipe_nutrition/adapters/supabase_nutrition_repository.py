"""Supabase repository for recipe nutrition snapshots."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from recipe_nutrition.domain.nutrition import RecipeNutrition
from recipe_nutrition.services.nutrition import NutritionSnapshotRepository


@dataclass
class SupabaseNutritionRepository(NutritionSnapshotRepository):
    """Stores the latest computed nutrition per recipe."""

    client: Client

    def save_snapshot(self, recipe_id: UUID, nutrition: RecipeNutrition) -> None:
        """Insert or update the recipe's nutrition row."""
        totals = nutrition.totals
        payload = {
            "calories": totals.calories,
            "protein_g": totals.protein_g,
            "carbs_g": totals.carbs_g,
            "fat_g": totals.fat_g,
            "fiber_g": totals.fiber_g,
            "sugar_g": totals.sugar_g,
            "provisional": totals.provisional,
            "provisional_reasons": list(totals.provisional_reasons),
            "health_score": nutrition.score.value,
            "health_label": nutrition.score.label.value,
            "health_breakdown": nutrition.score.breakdown,
            "goal": nutrition.goal.value,
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        existing = (
            self.client.table("recipe_nutrition")
            .select("recipe_id")
            .eq("recipe_id", str(recipe_id))
            .limit(1)
            .execute()
        )
        if existing.data:
            self.client.table("recipe_nutrition").update(payload).eq(
                "recipe_id", str(recipe_id)
            ).execute()
            return
        response = (
            self.client.table("recipe_nutrition")
            .insert({"recipe_id": str(recipe_id), **payload})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save recipe nutrition")
