"""Candidate retrieval from the food store."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import Protocol, TypeVar
from uuid import UUID

from recipe_nutrition.domain.errors import StoreUnavailableError
from recipe_nutrition.domain.foods import FoodCandidate, FoodUnit, PortionOverride
from recipe_nutrition.services.cache import Cache
from recipe_nutrition.services.normalizer import query_tokens

_logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class FoodRepository(Protocol):
    """Persistence interface for the food knowledge base."""

    def search_foods(self, tokens: Sequence[str], limit: int) -> list[FoodCandidate]:
        """Return foods whose name, brand or alias contains every token.

        Ordered by verification then popularity, at most ``limit`` rows.
        """

    def fetch_aliases(self, food_ids: Sequence[UUID]) -> dict[UUID, frozenset[str]]:
        """Return alias sets for many foods in one call."""

    def count_user_usage(
        self, user_id: UUID, food_ids: Sequence[UUID]
    ) -> dict[UUID, int]:
        """Return how often the user mapped each food."""

    def list_units(self, food_ids: Sequence[UUID]) -> dict[UUID, list[FoodUnit]]:
        """Return named portions for many foods in one call."""

    def list_portion_overrides(
        self, food_ids: Sequence[UUID], user_id: UUID | None = None
    ) -> dict[UUID, list[PortionOverride]]:
        """Return shared overrides, plus the user's own when ``user_id`` is set."""

    def get_foods(self, food_ids: Sequence[UUID]) -> list[FoodCandidate]:
        """Return foods by id; unknown ids are skipped."""

    def create_food(
        self, payload: dict[str, object], units: Sequence[FoodUnit]
    ) -> FoodCandidate:
        """Create a food with its named portions and return it."""


@dataclass
class CandidateService:
    """Retrieves candidates with batched alias and usage lookups."""

    repository: FoodRepository
    alias_cache: Cache
    limit: int = 50
    alias_ttl_seconds: int = 60

    def find_candidates(
        self, query: str, user_id: UUID | None = None
    ) -> list[FoodCandidate]:
        """Return candidates for a query enriched with aliases and usage."""
        tokens = query_tokens(query)
        if not tokens:
            return []
        foods = self._call(
            "search_foods", lambda: self.repository.search_foods(tokens, self.limit)
        )
        if not foods:
            return []
        food_ids = [food.id for food in foods]
        aliases = self.aliases_for(food_ids)
        usage: dict[UUID, int] = {}
        if user_id is not None:
            usage = self._call(
                "count_user_usage",
                lambda: self.repository.count_user_usage(user_id, food_ids),
            )
        return [
            replace(
                food,
                aliases=food.aliases | aliases.get(food.id, frozenset()),
                used_by_user_count=usage.get(food.id, food.used_by_user_count),
            )
            for food in foods
        ]

    def aliases_for(self, food_ids: Sequence[UUID]) -> dict[UUID, frozenset[str]]:
        """Batch alias lookup cached by the sorted id list."""
        if not food_ids:
            return {}
        cache_key = "aliases:" + ",".join(sorted(str(food_id) for food_id in food_ids))
        cached = self.alias_cache.get(cache_key)
        if isinstance(cached, dict):
            return cached
        aliases = self._call(
            "fetch_aliases", lambda: self.repository.fetch_aliases(food_ids)
        )
        self.alias_cache.set(cache_key, aliases, ttl_seconds=self.alias_ttl_seconds)
        return aliases

    def load_foods(
        self, food_ids: Sequence[UUID], user_id: UUID | None = None
    ) -> dict[UUID, FoodCandidate]:
        """Return foods by id with named portions and portion overrides."""
        unique_ids = list(dict.fromkeys(food_ids))
        if not unique_ids:
            return {}
        foods = self._call("get_foods", lambda: self.repository.get_foods(unique_ids))
        units = self._call("list_units", lambda: self.repository.list_units(unique_ids))
        overrides = self._call(
            "list_portion_overrides",
            lambda: self.repository.list_portion_overrides(unique_ids, user_id),
        )
        return {
            food.id: replace(
                food,
                units=tuple(units.get(food.id, food.units)),
                portion_overrides=_ordered_overrides(
                    overrides.get(food.id, food.portion_overrides)
                ),
            )
            for food in foods
        }

    def _call(self, action: str, func: Callable[[], _T]) -> _T:
        try:
            return func()
        except Exception as exc:
            _logger.warning("Food store %s failed: %s", action, exc)
            raise StoreUnavailableError(f"Food store {action} failed") from exc


def _ordered_overrides(
    overrides: Sequence[PortionOverride],
) -> tuple[PortionOverride, ...]:
    """Personal overrides first, then shared ones, each in store order."""
    personal = [item for item in overrides if item.user_id is not None]
    shared = [item for item in overrides if item.user_id is None]
    return tuple(personal + shared)
