"""Supabase implementation of the food knowledge base."""

from collections import Counter, defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, replace
from uuid import UUID

from supabase import Client

from recipe_nutrition.domain.foods import (
    FoodCandidate,
    FoodSource,
    FoodUnit,
    PortionOverride,
    Verification,
)
from recipe_nutrition.services.candidates import FoodRepository

_FOOD_COLUMNS = (
    "id,name,brand,source,verification,kcal100,protein100,carbs100,fat100,"
    "fiber100,sugar100,density_gml,category_id,popularity,barcodes"
)


@dataclass
class SupabaseFoodRepository(FoodRepository):
    """Supabase-backed repository for foods, aliases and named portions."""

    client: Client

    def search_foods(self, tokens: Sequence[str], limit: int) -> list[FoodCandidate]:
        """Return foods matching every token by name, brand or alias."""
        matching: set[str] | None = None
        for token in tokens:
            token_ids = self._ids_matching(token)
            matching = token_ids if matching is None else matching & token_ids
            if not matching:
                return []
        if not matching:
            return []
        response = (
            self.client.table("foods")
            .select(_FOOD_COLUMNS)
            .in_("id", sorted(matching))
            .order("verification", desc=True)
            .order("popularity", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def fetch_aliases(self, food_ids: Sequence[UUID]) -> dict[UUID, frozenset[str]]:
        """Return alias sets for many foods in one query."""
        if not food_ids:
            return {}
        response = (
            self.client.table("food_aliases")
            .select("food_id,alias_text")
            .in_("food_id", [str(food_id) for food_id in food_ids])
            .execute()
        )
        aliases: dict[UUID, set[str]] = defaultdict(set)
        for row in response.data or []:
            aliases[UUID(row["food_id"])].add(str(row["alias_text"]))
        return {food_id: frozenset(values) for food_id, values in aliases.items()}

    def count_user_usage(
        self, user_id: UUID, food_ids: Sequence[UUID]
    ) -> dict[UUID, int]:
        """Count mappings the user created per food."""
        if not food_ids:
            return {}
        response = (
            self.client.table("ingredient_food_maps")
            .select("food_id")
            .eq("mapped_by", str(user_id))
            .in_("food_id", [str(food_id) for food_id in food_ids])
            .execute()
        )
        counts = Counter(UUID(row["food_id"]) for row in response.data or [])
        return dict(counts)

    def list_units(self, food_ids: Sequence[UUID]) -> dict[UUID, list[FoodUnit]]:
        """Return named portions for many foods in one query."""
        if not food_ids:
            return {}
        response = (
            self.client.table("food_units")
            .select("food_id,label,grams")
            .in_("food_id", [str(food_id) for food_id in food_ids])
            .execute()
        )
        units: dict[UUID, list[FoodUnit]] = defaultdict(list)
        for row in response.data or []:
            units[UUID(row["food_id"])].append(_parse_unit(row))
        return dict(units)

    def list_portion_overrides(
        self, food_ids: Sequence[UUID], user_id: UUID | None = None
    ) -> dict[UUID, list[PortionOverride]]:
        """Return shared and, for a user, personal portion overrides."""
        if not food_ids:
            return {}
        ids = [str(food_id) for food_id in food_ids]
        overrides: dict[UUID, list[PortionOverride]] = defaultdict(list)
        if user_id is not None:
            response = (
                self.client.table("user_portion_overrides")
                .select("food_id,unit,grams,label,user_id")
                .eq("user_id", str(user_id))
                .in_("food_id", ids)
                .execute()
            )
            for row in response.data or []:
                overrides[UUID(row["food_id"])].append(_parse_override(row))
        response = (
            self.client.table("portion_overrides")
            .select("food_id,unit,grams,label")
            .in_("food_id", ids)
            .execute()
        )
        for row in response.data or []:
            overrides[UUID(row["food_id"])].append(_parse_override(row))
        return dict(overrides)

    def get_foods(self, food_ids: Sequence[UUID]) -> list[FoodCandidate]:
        """Return foods by id."""
        if not food_ids:
            return []
        response = (
            self.client.table("foods")
            .select(_FOOD_COLUMNS)
            .in_("id", [str(food_id) for food_id in food_ids])
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def create_food(
        self, payload: dict[str, object], units: Sequence[FoodUnit]
    ) -> FoodCandidate:
        """Create a food and its named portions."""
        response = self.client.table("foods").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create food")
        food = _parse_food(response.data[0])
        if units:
            unit_response = (
                self.client.table("food_units")
                .insert(
                    [
                        {
                            "food_id": str(food.id),
                            "label": unit.label,
                            "grams": unit.grams,
                        }
                        for unit in units
                    ]
                )
                .execute()
            )
            if not unit_response.data:
                raise RuntimeError("Failed to create food units")
        return replace(food, units=tuple(units))

    def _ids_matching(self, token: str) -> set[str]:
        pattern = f"%{token}%"
        foods_response = (
            self.client.table("foods")
            .select("id")
            .or_(f"name.ilike.{pattern},brand.ilike.{pattern}")
            .execute()
        )
        alias_response = (
            self.client.table("food_aliases")
            .select("food_id")
            .ilike("alias_text", pattern)
            .execute()
        )
        ids = {str(row["id"]) for row in foods_response.data or []}
        ids.update(str(row["food_id"]) for row in alias_response.data or [])
        return ids


def _parse_food(row: dict[str, object]) -> FoodCandidate:
    """Parse a food row into a domain model."""
    return FoodCandidate(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        brand=row.get("brand") or None,
        source=FoodSource(row.get("source") or FoodSource.COMMUNITY.value),
        verification=Verification(
            row.get("verification") or Verification.UNVERIFIED.value
        ),
        kcal100=float(row.get("kcal100") or 0.0),
        protein100=float(row.get("protein100") or 0.0),
        carbs100=float(row.get("carbs100") or 0.0),
        fat100=float(row.get("fat100") or 0.0),
        fiber100=_optional_float(row.get("fiber100")),
        sugar100=_optional_float(row.get("sugar100")),
        density_gml=_optional_float(row.get("density_gml")),
        category_id=row.get("category_id") or None,
        popularity=int(row.get("popularity") or 0),
        barcodes=frozenset(str(code) for code in row.get("barcodes") or []),
    )


def _parse_unit(row: dict[str, object]) -> FoodUnit:
    return FoodUnit(label=str(row.get("label", "")), grams=float(row.get("grams", 0.0)))


def _parse_override(row: dict[str, object]) -> PortionOverride:
    user_id = row.get("user_id")
    return PortionOverride(
        unit=str(row.get("unit", "")),
        grams=float(row.get("grams") or 0.0),
        label=row.get("label") or None,
        user_id=UUID(str(user_id)) if user_id else None,
    )


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    return float(value)
