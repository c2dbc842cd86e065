"""Shared test fixtures."""

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from uuid import UUID, uuid4

import pytest

from recipe_nutrition.config import Settings
from recipe_nutrition.domain.foods import (
    FoodCandidate,
    FoodSource,
    FoodUnit,
    PortionOverride,
    Verification,
)
from recipe_nutrition.domain.mappings import IngredientFoodMap, IngredientRecord
from recipe_nutrition.domain.nutrition import RecipeNutrition
from recipe_nutrition.services.auto_map import AutoMapService
from recipe_nutrition.services.cache import LruTtlCache
from recipe_nutrition.services.candidates import CandidateService, FoodRepository
from recipe_nutrition.services.mappings import MappingRepository, MappingService
from recipe_nutrition.services.nutrition import (
    NutritionSnapshotRepository,
    RecipeNutritionService,
)

_VERIFICATION_ORDER = {
    Verification.VERIFIED: 2,
    Verification.UNVERIFIED: 1,
    Verification.SUSPECT: 0,
}


def make_food(name: str, **overrides: object) -> FoodCandidate:
    """Build a food with neutral defaults."""
    values: dict[str, object] = {
        "id": uuid4(),
        "name": name,
        "source": FoodSource.TEMPLATE,
        "verification": Verification.VERIFIED,
        "kcal100": 100.0,
        "protein100": 5.0,
        "carbs100": 15.0,
        "fat100": 2.0,
    }
    values.update(overrides)
    return FoodCandidate(**values)  # type: ignore[arg-type]


def make_ingredient(
    recipe_id: UUID, raw_text: str, name: str | None = None
) -> IngredientRecord:
    return IngredientRecord(
        id=uuid4(),
        recipe_id=recipe_id,
        name=name or raw_text,
        qty=1.0,
        unit="",
        raw_text=raw_text,
    )


@dataclass
class InMemoryFoodRepository(FoodRepository):
    """In-memory food store for tests."""

    foods: dict[UUID, FoodCandidate] = field(default_factory=dict)
    aliases: dict[UUID, set[str]] = field(default_factory=dict)
    units: dict[UUID, list[FoodUnit]] = field(default_factory=dict)
    usage: dict[tuple[UUID, UUID], int] = field(default_factory=dict)
    overrides: dict[UUID, list[PortionOverride]] = field(default_factory=dict)
    alias_calls: int = 0
    search_calls: int = 0
    fail: bool = False

    def add(
        self,
        food: FoodCandidate,
        aliases: Sequence[str] = (),
        units: Sequence[FoodUnit] = (),
    ) -> FoodCandidate:
        self.foods[food.id] = food
        if aliases:
            self.aliases[food.id] = set(aliases)
        if units:
            self.units[food.id] = list(units)
        return food

    def search_foods(self, tokens: Sequence[str], limit: int) -> list[FoodCandidate]:
        self.search_calls += 1
        if self.fail:
            raise ConnectionError("store offline")
        matches = []
        for food in self.foods.values():
            texts = [food.name.lower(), (food.brand or "").lower()]
            texts.extend(alias.lower() for alias in self.aliases.get(food.id, ()))
            if all(any(token in text for text in texts) for token in tokens):
                matches.append(food)
        matches.sort(
            key=lambda food: (_VERIFICATION_ORDER[food.verification], food.popularity),
            reverse=True,
        )
        return matches[:limit]

    def fetch_aliases(self, food_ids: Sequence[UUID]) -> dict[UUID, frozenset[str]]:
        self.alias_calls += 1
        return {
            food_id: frozenset(self.aliases[food_id])
            for food_id in food_ids
            if food_id in self.aliases
        }

    def count_user_usage(
        self, user_id: UUID, food_ids: Sequence[UUID]
    ) -> dict[UUID, int]:
        return {
            food_id: self.usage[(user_id, food_id)]
            for food_id in food_ids
            if (user_id, food_id) in self.usage
        }

    def list_units(self, food_ids: Sequence[UUID]) -> dict[UUID, list[FoodUnit]]:
        return {
            food_id: list(self.units[food_id])
            for food_id in food_ids
            if food_id in self.units
        }

    def list_portion_overrides(
        self, food_ids: Sequence[UUID], user_id: UUID | None = None
    ) -> dict[UUID, list[PortionOverride]]:
        result: dict[UUID, list[PortionOverride]] = {}
        for food_id in food_ids:
            rows = [
                item
                for item in self.overrides.get(food_id, [])
                if item.user_id is None or item.user_id == user_id
            ]
            if rows:
                result[food_id] = rows
        return result

    def get_foods(self, food_ids: Sequence[UUID]) -> list[FoodCandidate]:
        if self.fail:
            raise ConnectionError("store offline")
        return [self.foods[food_id] for food_id in food_ids if food_id in self.foods]

    def create_food(
        self, payload: dict[str, object], units: Sequence[FoodUnit]
    ) -> FoodCandidate:
        food = make_food(
            str(payload["name"]),
            brand=payload.get("brand"),
            source=FoodSource(payload["source"]),
            verification=Verification(payload["verification"]),
            kcal100=payload["kcal100"],
            protein100=payload["protein100"],
            carbs100=payload["carbs100"],
            fat100=payload["fat100"],
            fiber100=payload.get("fiber100"),
            sugar100=payload.get("sugar100"),
            category_id=payload.get("category_id"),
        )
        return self.add(replace(food, units=tuple(units)), units=units)


@dataclass
class InMemoryMappingRepository(MappingRepository):
    """In-memory ingredient and mapping store for tests."""

    ingredients: dict[UUID, IngredientRecord] = field(default_factory=dict)
    maps: list[IngredientFoodMap] = field(default_factory=list)

    def add_ingredient(self, ingredient: IngredientRecord) -> IngredientRecord:
        self.ingredients[ingredient.id] = ingredient
        return ingredient

    def list_ingredients(self, recipe_id: UUID) -> list[IngredientRecord]:
        return [
            row for row in self.ingredients.values() if row.recipe_id == recipe_id
        ]

    def get_ingredient(self, ingredient_id: UUID) -> IngredientRecord | None:
        return self.ingredients.get(ingredient_id)

    def list_maps(self, ingredient_ids: Sequence[UUID]) -> list[IngredientFoodMap]:
        wanted = set(ingredient_ids)
        return [item for item in self.maps if item.ingredient_id in wanted]

    def create_map(
        self,
        ingredient_id: UUID,
        food_id: UUID,
        confidence: float,
        mapped_by: str,
        use_once: bool = False,
    ) -> IngredientFoodMap:
        mapping = IngredientFoodMap(
            id=uuid4(),
            ingredient_id=ingredient_id,
            food_id=food_id,
            confidence=confidence,
            is_active=True,
            use_once=use_once,
            mapped_by=mapped_by,
        )
        self.maps.append(mapping)
        return mapping

    def deactivate_maps(self, ingredient_id: UUID) -> int:
        count = 0
        for index, item in enumerate(self.maps):
            if item.ingredient_id == ingredient_id and item.is_active:
                self.maps[index] = replace(item, is_active=False)
                count += 1
        return count


@dataclass
class InMemorySnapshotRepository(NutritionSnapshotRepository):
    """Records saved nutrition snapshots."""

    snapshots: dict[UUID, RecipeNutrition] = field(default_factory=dict)

    def save_snapshot(self, recipe_id: UUID, nutrition: RecipeNutrition) -> None:
        self.snapshots[recipe_id] = nutrition


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        fdc_api_key="fdc-key",
    )


@pytest.fixture
def food_repository() -> InMemoryFoodRepository:
    return InMemoryFoodRepository()


@pytest.fixture
def mapping_repository() -> InMemoryMappingRepository:
    return InMemoryMappingRepository()


@pytest.fixture
def snapshot_repository() -> InMemorySnapshotRepository:
    return InMemorySnapshotRepository()


@pytest.fixture
def candidate_service(food_repository: InMemoryFoodRepository) -> CandidateService:
    return CandidateService(repository=food_repository, alias_cache=LruTtlCache())


@pytest.fixture
def mapping_service(
    mapping_repository: InMemoryMappingRepository,
    food_repository: InMemoryFoodRepository,
) -> MappingService:
    return MappingService(
        repository=mapping_repository, food_repository=food_repository
    )


@pytest.fixture
def auto_map_service(
    candidate_service: CandidateService, mapping_service: MappingService
) -> AutoMapService:
    return AutoMapService(
        candidate_service=candidate_service, mapping_service=mapping_service
    )


@pytest.fixture
def nutrition_service(
    mapping_service: MappingService,
    candidate_service: CandidateService,
    snapshot_repository: InMemorySnapshotRepository,
) -> RecipeNutritionService:
    return RecipeNutritionService(
        mapping_service=mapping_service,
        candidate_service=candidate_service,
        snapshot_repository=snapshot_repository,
    )
