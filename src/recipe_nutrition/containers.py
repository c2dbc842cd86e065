"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from recipe_nutrition.adapters.fdc_client import HttpxFdcClient
from recipe_nutrition.adapters.supabase_food_repository import SupabaseFoodRepository
from recipe_nutrition.adapters.supabase_mapping_repository import (
    SupabaseMappingRepository,
)
from recipe_nutrition.adapters.supabase_nutrition_repository import (
    SupabaseNutritionRepository,
)
from recipe_nutrition.app_logging import configure_logging
from recipe_nutrition.config import Settings
from recipe_nutrition.services.auto_map import AutoMapService
from recipe_nutrition.services.cache import LruTtlCache
from recipe_nutrition.services.candidates import CandidateService
from recipe_nutrition.services.food_import import FoodImportService
from recipe_nutrition.services.mappings import MappingService
from recipe_nutrition.services.nutrition import RecipeNutritionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    candidate_service: CandidateService
    mapping_service: MappingService
    auto_map_service: AutoMapService
    nutrition_service: RecipeNutritionService
    food_import_service: FoodImportService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    configure_logging(resolved_settings.log_level)
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    food_repository = SupabaseFoodRepository(supabase_client)
    mapping_repository = SupabaseMappingRepository(supabase_client)
    nutrition_repository = SupabaseNutritionRepository(supabase_client)
    candidate_service = CandidateService(
        repository=food_repository,
        alias_cache=LruTtlCache(max_entries=resolved_settings.alias_cache_max_entries),
        limit=resolved_settings.candidate_limit,
        alias_ttl_seconds=resolved_settings.alias_cache_ttl_seconds,
    )
    mapping_service = MappingService(
        repository=mapping_repository,
        food_repository=food_repository,
    )
    auto_map_service = AutoMapService(
        candidate_service=candidate_service,
        mapping_service=mapping_service,
        min_confidence=resolved_settings.auto_map_min_confidence,
    )
    nutrition_service = RecipeNutritionService(
        mapping_service=mapping_service,
        candidate_service=candidate_service,
        snapshot_repository=nutrition_repository,
        use_v2_score=resolved_settings.health_score_v2,
        low_confidence_threshold=resolved_settings.low_confidence_threshold,
        low_confidence_share_limit=resolved_settings.low_confidence_share_limit,
        unresolved_portion_grams=resolved_settings.unresolved_portion_grams,
    )
    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.fdc_api_key,
        base_url=resolved_settings.fdc_base_url,
    )
    food_import_service = FoodImportService(
        fdc_client=fdc_client,
        repository=food_repository,
    )

    async def close_resources() -> None:
        await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        candidate_service=candidate_service,
        mapping_service=mapping_service,
        auto_map_service=auto_map_service,
        nutrition_service=nutrition_service,
        food_import_service=food_import_service,
        close_resources=close_resources,
    )
