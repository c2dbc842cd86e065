"""Tests for the auto-mapper."""

from collections.abc import Sequence
from dataclasses import dataclass
from uuid import uuid4

from recipe_nutrition.domain.foods import FoodCandidate
from recipe_nutrition.domain.mappings import SYSTEM_MAPPER
from recipe_nutrition.services.auto_map import AutoMapService, AutoMapStatus
from recipe_nutrition.services.cache import LruTtlCache
from recipe_nutrition.services.candidates import CandidateService
from recipe_nutrition.services.mappings import MappingService
from tests.conftest import (
    InMemoryFoodRepository,
    InMemoryMappingRepository,
    make_food,
    make_ingredient,
)


@dataclass
class FlakyFoodRepository(InMemoryFoodRepository):
    """Fails for queries containing a poisoned token."""

    poison: str = "broken"

    def search_foods(self, tokens: Sequence[str], limit: int) -> list[FoodCandidate]:
        if self.poison in tokens:
            raise TimeoutError("store timed out")
        return super().search_foods(tokens, limit)


def _brown_rice() -> FoodCandidate:
    return make_food(
        "Brown rice, cooked",
        kcal100=112,
        protein100=2.3,
        carbs100=23.5,
        fat100=0.8,
        popularity=50,
    )


def test_auto_map_maps_confident_matches_only(
    auto_map_service: AutoMapService,
    mapping_repository: InMemoryMappingRepository,
    food_repository: InMemoryFoodRepository,
) -> None:
    recipe_id = uuid4()
    rice = food_repository.add(_brown_rice())
    rice_line = mapping_repository.add_ingredient(
        make_ingredient(recipe_id, "1 cup brown rice")
    )
    mapping_repository.add_ingredient(make_ingredient(recipe_id, "2 tbsp unicorn dust"))

    mapped = auto_map_service.auto_map_recipe(recipe_id)

    assert mapped == 1
    assert len(mapping_repository.maps) == 1
    mapping = mapping_repository.maps[0]
    assert mapping.ingredient_id == rice_line.id
    assert mapping.food_id == rice.id
    assert mapping.mapped_by == SYSTEM_MAPPER
    assert mapping.is_active is True
    assert 0.4 <= mapping.confidence <= 1.0


def test_auto_map_reports_outcomes(
    auto_map_service: AutoMapService,
    mapping_repository: InMemoryMappingRepository,
    food_repository: InMemoryFoodRepository,
) -> None:
    recipe_id = uuid4()
    food_repository.add(_brown_rice())
    mapping_repository.add_ingredient(make_ingredient(recipe_id, "unicorn dust"))

    outcomes = auto_map_service.map_recipe(recipe_id)

    assert [item.status for item in outcomes] == [AutoMapStatus.NO_MATCH]


def test_auto_map_skips_already_mapped_ingredients(
    auto_map_service: AutoMapService,
    mapping_repository: InMemoryMappingRepository,
    food_repository: InMemoryFoodRepository,
) -> None:
    recipe_id = uuid4()
    food_repository.add(_brown_rice())
    ingredient = mapping_repository.add_ingredient(
        make_ingredient(recipe_id, "1 cup brown rice")
    )
    mapping_repository.create_map(ingredient.id, uuid4(), 1.0, str(uuid4()))

    assert auto_map_service.auto_map_recipe(recipe_id) == 0
    assert len(mapping_repository.maps) == 1


def test_low_confidence_leaves_ingredient_unmapped(
    candidate_service: CandidateService,
    mapping_service: MappingService,
    mapping_repository: InMemoryMappingRepository,
    food_repository: InMemoryFoodRepository,
) -> None:
    recipe_id = uuid4()
    food_repository.add(_brown_rice())
    mapping_repository.add_ingredient(make_ingredient(recipe_id, "1 cup brown rice"))
    service = AutoMapService(
        candidate_service=candidate_service,
        mapping_service=mapping_service,
        min_confidence=0.99,
    )

    outcomes = service.map_recipe(recipe_id)

    assert outcomes[0].status is AutoMapStatus.LOW_CONFIDENCE
    assert outcomes[0].best is not None
    assert mapping_repository.maps == []


def test_failing_ingredient_does_not_abort_batch(
    mapping_repository: InMemoryMappingRepository,
) -> None:
    recipe_id = uuid4()
    food_repository = FlakyFoodRepository()
    food_repository.add(_brown_rice())
    mapping_repository.add_ingredient(make_ingredient(recipe_id, "broken glass"))
    mapping_repository.add_ingredient(make_ingredient(recipe_id, "1 cup brown rice"))
    service = AutoMapService(
        candidate_service=CandidateService(
            repository=food_repository, alias_cache=LruTtlCache()
        ),
        mapping_service=MappingService(
            repository=mapping_repository, food_repository=food_repository
        ),
    )

    outcomes = service.map_recipe(recipe_id)

    assert [item.status for item in outcomes] == [
        AutoMapStatus.FAILED,
        AutoMapStatus.MAPPED,
    ]
