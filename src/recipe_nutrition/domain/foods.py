"""Food knowledge base domain models."""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class FoodSource(Enum):
    """Where a food record came from."""

    SEED = "seed"
    TEMPLATE = "template"
    COMMUNITY = "community"
    USDA = "usda"
    FATSECRET = "fatsecret"


class Verification(Enum):
    """Trust level of a food record."""

    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    SUSPECT = "suspect"


@dataclass(frozen=True)
class FoodUnit:
    """Named portion attached to a specific food, e.g. "1 large" -> 50 g."""

    label: str
    grams: float


@dataclass(frozen=True)
class PortionOverride:
    """Provider- or user-supplied grams for one unit of a food.

    ``user_id`` is set for a personal override and ``None`` for one that
    applies to everyone. ``label`` narrows the match ("large" clove).
    """

    unit: str
    grams: float
    label: str | None = None
    user_id: UUID | None = None


@dataclass(frozen=True)
class FoodCandidate:
    """Food record retrieved from the store as a possible match for a query."""

    id: UUID
    name: str
    source: FoodSource
    verification: Verification
    kcal100: float
    protein100: float
    carbs100: float
    fat100: float
    brand: str | None = None
    fiber100: float | None = None
    sugar100: float | None = None
    density_gml: float | None = None
    category_id: str | None = None
    popularity: int = 0
    aliases: frozenset[str] = field(default_factory=frozenset)
    barcodes: frozenset[str] = field(default_factory=frozenset)
    used_by_user_count: int = 0
    units: tuple[FoodUnit, ...] = ()
    portion_overrides: tuple[PortionOverride, ...] = ()


@dataclass(frozen=True)
class RankedCandidate:
    """Candidate annotated with its weighted score and confidence."""

    candidate: FoodCandidate
    score: float
    confidence: float
