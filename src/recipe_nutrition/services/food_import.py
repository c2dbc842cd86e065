"""Import USDA FoodData Central foods into the food store."""

import asyncio
import logging
import math
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace

from recipe_nutrition.adapters.fdc_client import FdcClient
from recipe_nutrition.domain.foods import (
    FoodCandidate,
    FoodSource,
    FoodUnit,
    Verification,
)
from recipe_nutrition.services.candidates import FoodRepository
from recipe_nutrition.services.portions import category_hint_for

_NUTRIENT_IDS = {
    "calories": 1008,
    "energy_kj": 1062,
    "protein": 1003,
    "fat": 1004,
    "carbs": 1005,
    "fiber": 1079,
    "sugar": 2000,
}

_LABEL_KEYS = {
    "calories": "calories",
    "protein": "protein",
    "fat": "fat",
    "carbs": "carbohydrates",
    "fiber": "fiber",
    "sugar": "sugars",
}

KJ_PER_KCAL = 4.184
MAX_KCAL_100G = 900.0
MAX_MACRO_100G = 100.0
ATWATER_TOLERANCE = 0.15

_GRAM_UNITS = {"g", "gram", "grams", "grm"}
_ML_UNITS = {"ml", "milliliter", "milliliters", "mlt"}
_WHITESPACE = re.compile(r"\s+")

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NutrientProfile:
    """Energy and macronutrients for one basis amount."""

    kcal: float
    protein: float
    carbs: float
    fat: float
    fiber: float | None = None
    sugar: float | None = None


@dataclass
class FoodImportService:
    """Fetches FDC foods, normalizes them per 100 g and stores them."""

    fdc_client: FdcClient
    repository: FoodRepository
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def import_fdc_food(self, fdc_id: int) -> FoodCandidate:
        """Import one FDC food and return the stored record."""
        payload = await self._call_with_retry(
            lambda: self.fdc_client.get_food(fdc_id), action=f"get_food:{fdc_id}"
        )
        name = clean_food_name(str(payload.get("description") or ""))
        if not name:
            raise ValueError(f"FDC food {fdc_id} has no description")
        brand = payload.get("brandOwner") or payload.get("brandName") or None
        category = category_hint_for(name)
        per_100g = per_100g_profile(payload, category)
        if per_100g is None:
            raise ValueError(f"FDC food {fdc_id} has no usable nutrition data")
        profile = sanitize_per_100g(per_100g)
        units = extract_portions(payload.get("foodPortions") or [])

        food = self.repository.create_food(
            {
                "name": name,
                "brand": brand,
                "source": FoodSource.USDA.value,
                "verification": Verification.UNVERIFIED.value,
                "source_ref": f"fdc:{fdc_id}",
                "category_id": category,
                "kcal100": profile.kcal,
                "protein100": profile.protein,
                "carbs100": profile.carbs,
                "fat100": profile.fat,
                "fiber100": profile.fiber,
                "sugar100": profile.sugar,
            },
            units,
        )
        _logger.info(
            "FDC food imported: fdc_id=%s food_id=%s units=%s",
            fdc_id,
            food.id,
            len(units),
        )
        return food

    async def _call_with_retry(
        self, func: Callable[[], Awaitable[dict[str, object]]], *, action: str
    ) -> dict[str, object]:
        """Call an async function with a short retry."""
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "FDC %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def clean_food_name(name: str) -> str:
    return _WHITESPACE.sub(" ", name).strip()


def per_100g_profile(
    payload: dict[str, object], category: str | None = None
) -> NutrientProfile | None:
    """Per-100 g nutrients from FDC nutrients, else from per-serving label data."""
    nutrients = _extract_nutrients(payload.get("foodNutrients") or [])
    kcal = _energy_kcal(nutrients)
    if kcal is not None:
        return NutrientProfile(
            kcal=kcal,
            protein=nutrients.get("protein", 0.0),
            carbs=nutrients.get("carbs", 0.0),
            fat=nutrients.get("fat", 0.0),
            fiber=nutrients.get("fiber"),
            sugar=nutrients.get("sugar"),
        )

    label = _extract_label(payload.get("labelNutrients") or {})
    serving_grams = _serving_grams(payload, category)
    if "calories" not in label or serving_grams is None:
        return None
    factor = 100 / serving_grams
    return NutrientProfile(
        kcal=label["calories"] * factor,
        protein=label.get("protein", 0.0) * factor,
        carbs=label.get("carbs", 0.0) * factor,
        fat=label.get("fat", 0.0) * factor,
        fiber=label["fiber"] * factor if "fiber" in label else None,
        sugar=label["sugar"] * factor if "sugar" in label else None,
    )


def sanitize_per_100g(profile: NutrientProfile) -> NutrientProfile:
    """Clamp values to physical limits and reconcile carbs with energy.

    Carbs are recomputed from energy when the Atwater estimate differs from
    the stated energy by more than 15 percent.
    """
    kcal = _bounded(profile.kcal, MAX_KCAL_100G)
    protein = _bounded(profile.protein, MAX_MACRO_100G)
    fat = _bounded(profile.fat, MAX_MACRO_100G)
    carbs = _bounded(profile.carbs, MAX_MACRO_100G)

    estimate = 4 * protein + 4 * carbs + 9 * fat
    if kcal > 0 and abs(estimate - kcal) / kcal > ATWATER_TOLERANCE:
        carbs = _bounded((kcal - 4 * protein - 9 * fat) / 4, MAX_MACRO_100G)

    fiber = profile.fiber
    if fiber is not None:
        fiber = min(_bounded(fiber, MAX_MACRO_100G), carbs)
    sugar = profile.sugar
    if sugar is not None:
        sugar = _bounded(sugar, MAX_MACRO_100G)
    return replace(
        profile,
        kcal=kcal,
        protein=protein,
        carbs=carbs,
        fat=fat,
        fiber=fiber,
        sugar=sugar,
    )


def extract_portions(portions: list[dict[str, object]]) -> list[FoodUnit]:
    """Named portions from FDC ``foodPortions``."""
    units: list[FoodUnit] = []
    seen: set[str] = set()
    for portion in portions:
        grams = _number(portion.get("gramWeight"))
        if grams is None or grams <= 0:
            continue
        label = _portion_label(portion)
        if not label or label in seen:
            continue
        seen.add(label)
        units.append(FoodUnit(label=label, grams=grams))
    return units


def _portion_label(portion: dict[str, object]) -> str:
    description = clean_food_name(str(portion.get("portionDescription") or ""))
    if description and description.lower() != "quantity not specified":
        return description
    measure = portion.get("measureUnit") or {}
    measure_name = measure.get("name") if isinstance(measure, dict) else None
    if measure_name == "undetermined":
        measure_name = None
    text = clean_food_name(str(portion.get("modifier") or measure_name or ""))
    if not text:
        return ""
    amount = _number(portion.get("amount"))
    if amount is None or amount <= 0:
        return text
    return f"{amount:g} {text}"


def _extract_nutrients(food_nutrients: list[dict[str, object]]) -> dict[str, float]:
    """Nutrient amounts keyed by name; both detail and search shapes."""
    by_id = {nutrient_id: key for key, nutrient_id in _NUTRIENT_IDS.items()}
    values: dict[str, float] = {}
    for nutrient in food_nutrients:
        nutrient_info = nutrient.get("nutrient") or {}
        nutrient_id = nutrient_info.get("id") or nutrient.get("nutrientId")
        amount = _number(nutrient.get("amount", nutrient.get("value")))
        key = by_id.get(nutrient_id)
        if key is not None and amount is not None and key not in values:
            values[key] = amount
    return values


def _extract_label(label_nutrients: dict[str, object]) -> dict[str, float]:
    values: dict[str, float] = {}
    for key, label_key in _LABEL_KEYS.items():
        entry = label_nutrients.get(label_key)
        if isinstance(entry, dict):
            amount = _number(entry.get("value"))
            if amount is not None:
                values[key] = amount
    return values


def _energy_kcal(nutrients: dict[str, float]) -> float | None:
    if "calories" in nutrients:
        return nutrients["calories"]
    if "energy_kj" in nutrients:
        return nutrients["energy_kj"] / KJ_PER_KCAL
    return None


def _serving_grams(payload: dict[str, object], category: str | None) -> float | None:
    size = _number(payload.get("servingSize"))
    if size is None or size <= 0:
        return None
    unit = str(payload.get("servingSizeUnit") or "").strip().lower()
    if unit in _GRAM_UNITS:
        return size
    if unit in _ML_UNITS and category == "liquid":
        return size
    return None


def _number(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _bounded(value: float, upper: float) -> float:
    return min(upper, max(0.0, value))


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"
