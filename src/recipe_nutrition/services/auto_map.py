"""Best-effort automatic mapping of recipe ingredients to foods."""

import logging
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from recipe_nutrition.domain.foods import RankedCandidate
from recipe_nutrition.domain.mappings import (
    SYSTEM_MAPPER,
    IngredientFoodMap,
    IngredientRecord,
)
from recipe_nutrition.services.candidates import CandidateService
from recipe_nutrition.services.mappings import MappingService
from recipe_nutrition.services.parser import parse_ingredient_line
from recipe_nutrition.services.plausibility import kcal_band_for_query
from recipe_nutrition.services.ranking import rank_candidates

_logger = logging.getLogger(__name__)


class AutoMapStatus(Enum):
    """Result of auto-mapping one ingredient."""

    MAPPED = "mapped"
    ALREADY_MAPPED = "already_mapped"
    NO_MATCH = "no_match"
    LOW_CONFIDENCE = "low_confidence"
    FAILED = "failed"


@dataclass(frozen=True)
class AutoMapOutcome:
    """What happened to one ingredient during an auto-map pass."""

    ingredient_id: UUID
    status: AutoMapStatus
    best: RankedCandidate | None = None
    mapping: IngredientFoodMap | None = None


@dataclass
class AutoMapService:
    """Maps new recipe ingredients to their best-ranked food."""

    candidate_service: CandidateService
    mapping_service: MappingService
    min_confidence: float = 0.4

    def auto_map_recipe(self, recipe_id: UUID, user_id: UUID | None = None) -> int:
        """Map every unmapped ingredient and return how many were mapped."""
        outcomes = self.map_recipe(recipe_id, user_id)
        return sum(1 for item in outcomes if item.status is AutoMapStatus.MAPPED)

    def map_recipe(
        self, recipe_id: UUID, user_id: UUID | None = None
    ) -> list[AutoMapOutcome]:
        """Run the auto-map pass and report an outcome per ingredient.

        A failing ingredient is logged and reported as FAILED without
        stopping the rest of the batch.
        """
        ingredients = self.mapping_service.repository.list_ingredients(recipe_id)
        current = self.mapping_service.current_maps(ingredients)
        _logger.info(
            "Auto-map start: recipe_id=%s ingredients=%s", recipe_id, len(ingredients)
        )
        outcomes: list[AutoMapOutcome] = []
        for ingredient in ingredients:
            if ingredient.id in current:
                outcomes.append(
                    AutoMapOutcome(
                        ingredient_id=ingredient.id,
                        status=AutoMapStatus.ALREADY_MAPPED,
                        mapping=current[ingredient.id],
                    )
                )
                continue
            try:
                outcome = self.map_ingredient(ingredient, user_id)
            except Exception:
                _logger.exception(
                    "Auto-map failed for ingredient",
                    extra={"ingredient_id": str(ingredient.id)},
                )
                outcome = AutoMapOutcome(
                    ingredient_id=ingredient.id, status=AutoMapStatus.FAILED
                )
            outcomes.append(outcome)

        mapped = sum(1 for item in outcomes if item.status is AutoMapStatus.MAPPED)
        _logger.info(
            "Auto-map done: recipe_id=%s mapped=%s total=%s",
            recipe_id,
            mapped,
            len(outcomes),
        )
        return outcomes

    def map_ingredient(
        self, ingredient: IngredientRecord, user_id: UUID | None = None
    ) -> AutoMapOutcome:
        """Rank candidates for one ingredient and persist an accepted match."""
        parsed = parse_ingredient_line(ingredient.line)
        query = parsed.name or ingredient.name
        candidates = self.candidate_service.find_candidates(query, user_id)
        _, band = kcal_band_for_query(query)
        ranked = rank_candidates(
            candidates,
            query,
            unit_hint=parsed.unit_hint,
            qualifiers=parsed.qualifiers,
            band=band,
        )
        if not ranked:
            _logger.info("Auto-map no match: ingredient_id=%s", ingredient.id)
            return AutoMapOutcome(
                ingredient_id=ingredient.id, status=AutoMapStatus.NO_MATCH
            )

        best = ranked[0]
        if best.confidence < self.min_confidence:
            _logger.info(
                "Auto-map low confidence: ingredient_id=%s confidence=%.2f",
                ingredient.id,
                best.confidence,
            )
            return AutoMapOutcome(
                ingredient_id=ingredient.id,
                status=AutoMapStatus.LOW_CONFIDENCE,
                best=best,
            )

        mapping = self.mapping_service.repository.create_map(
            ingredient.id,
            best.candidate.id,
            confidence=best.confidence,
            mapped_by=SYSTEM_MAPPER,
        )
        _logger.info(
            "Auto-map mapped: ingredient_id=%s food_id=%s confidence=%.2f",
            ingredient.id,
            best.candidate.id,
            best.confidence,
        )
        return AutoMapOutcome(
            ingredient_id=ingredient.id,
            status=AutoMapStatus.MAPPED,
            best=best,
            mapping=mapping,
        )
