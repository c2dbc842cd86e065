"""Recipe-level nutrition totals and health score."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from recipe_nutrition.domain.nutrition import Goal, RecipeNutrition
from recipe_nutrition.services.aggregation import (
    IngredientContribution,
    aggregate_totals,
)
from recipe_nutrition.services.candidates import CandidateService
from recipe_nutrition.services.health_score import score_totals
from recipe_nutrition.services.mappings import MappingService
from recipe_nutrition.services.parser import parse_ingredient_line
from recipe_nutrition.services.portions import resolve_parsed

_logger = logging.getLogger(__name__)


class NutritionSnapshotRepository(Protocol):
    """Persistence interface for the derived recipe nutrition view."""

    def save_snapshot(self, recipe_id: UUID, nutrition: RecipeNutrition) -> None:
        """Insert or replace the recipe's nutrition snapshot."""


@dataclass
class RecipeNutritionService:
    """Computes recipe nutrition from the current ingredient mappings."""

    mapping_service: MappingService
    candidate_service: CandidateService
    snapshot_repository: NutritionSnapshotRepository
    use_v2_score: bool = True
    low_confidence_threshold: float = 0.5
    low_confidence_share_limit: float = 0.3
    unresolved_portion_grams: float | None = None

    def compute(
        self,
        recipe_id: UUID,
        goal: Goal = Goal.GENERAL,
        user_id: UUID | None = None,
    ) -> RecipeNutrition:
        """Aggregate, score and store the nutrition of a recipe.

        With ``user_id`` the user's own portion overrides take precedence.
        """
        ingredients = self.mapping_service.repository.list_ingredients(recipe_id)
        current = self.mapping_service.current_maps(ingredients)
        foods = self.candidate_service.load_foods(
            [mapping.food_id for mapping in current.values()], user_id
        )

        contributions: list[IngredientContribution] = []
        unmapped: list[str] = []
        for ingredient in ingredients:
            mapping = current.get(ingredient.id)
            food = foods.get(mapping.food_id) if mapping is not None else None
            if mapping is None or food is None:
                unmapped.append(ingredient.name)
                contributions.append(IngredientContribution(ingredient.name))
                continue
            parsed = parse_ingredient_line(ingredient.line)
            contributions.append(
                IngredientContribution(
                    ingredient.name,
                    mapping=mapping,
                    food=food,
                    portion=resolve_parsed(parsed, food),
                )
            )

        totals = aggregate_totals(
            contributions,
            low_confidence_threshold=self.low_confidence_threshold,
            low_confidence_share_limit=self.low_confidence_share_limit,
            unresolved_portion_grams=self.unresolved_portion_grams,
        )
        score = score_totals(totals, goal, use_v2=self.use_v2_score)
        nutrition = RecipeNutrition(
            totals=totals, score=score, goal=goal, unmapped_ingredients=unmapped
        )
        self.snapshot_repository.save_snapshot(recipe_id, nutrition)
        _logger.info(
            "Recipe nutrition computed: recipe_id=%s calories=%.1f provisional=%s "
            "unmapped=%s",
            recipe_id,
            totals.calories,
            totals.provisional,
            len(unmapped),
        )
        return nutrition
