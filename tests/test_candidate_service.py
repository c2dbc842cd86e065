"""Tests for candidate retrieval."""

from uuid import uuid4

import pytest

from recipe_nutrition.domain.errors import StoreUnavailableError
from recipe_nutrition.domain.foods import FoodUnit, PortionOverride, Verification
from recipe_nutrition.services.cache import LruTtlCache
from recipe_nutrition.services.candidates import CandidateService
from tests.conftest import InMemoryFoodRepository, make_food


def test_find_candidates_attaches_aliases_and_usage(
    food_repository: InMemoryFoodRepository,
) -> None:
    user_id = uuid4()
    oil = food_repository.add(make_food("Olive oil"), aliases=["evoo"])
    food_repository.usage[(user_id, oil.id)] = 4
    service = CandidateService(repository=food_repository, alias_cache=LruTtlCache())

    candidates = service.find_candidates("EVOO", user_id=user_id)

    assert [food.id for food in candidates] == [oil.id]
    assert candidates[0].aliases == frozenset({"evoo"})
    assert candidates[0].used_by_user_count == 4


def test_search_requires_every_token(
    candidate_service: CandidateService, food_repository: InMemoryFoodRepository
) -> None:
    brown = food_repository.add(make_food("Brown rice"))
    food_repository.add(make_food("White rice"))

    candidates = candidate_service.find_candidates("brown rice")

    assert [food.id for food in candidates] == [brown.id]


def test_store_orders_verified_then_popular(
    candidate_service: CandidateService, food_repository: InMemoryFoodRepository
) -> None:
    suspect = food_repository.add(
        make_food("Tofu", verification=Verification.SUSPECT, popularity=900)
    )
    popular = food_repository.add(make_food("Firm tofu", popularity=50))
    plain = food_repository.add(make_food("Silken tofu"))

    candidates = candidate_service.find_candidates("tofu")

    assert [food.id for food in candidates] == [popular.id, plain.id, suspect.id]


def test_alias_lookups_are_cached_by_id_set(
    candidate_service: CandidateService, food_repository: InMemoryFoodRepository
) -> None:
    first = food_repository.add(make_food("Oat milk"), aliases=["oatly"])
    second = food_repository.add(make_food("Oats"))

    candidate_service.aliases_for([first.id, second.id])
    cached = candidate_service.aliases_for([second.id, first.id])

    assert food_repository.alias_calls == 1
    assert cached == {first.id: frozenset({"oatly"})}


def test_empty_query_skips_the_store(
    candidate_service: CandidateService, food_repository: InMemoryFoodRepository
) -> None:
    assert candidate_service.find_candidates("  !! ") == []
    assert food_repository.search_calls == 0


def test_store_failure_is_wrapped(
    candidate_service: CandidateService, food_repository: InMemoryFoodRepository
) -> None:
    food_repository.fail = True

    with pytest.raises(StoreUnavailableError) as excinfo:
        candidate_service.find_candidates("rice")

    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_load_foods_attaches_units(
    candidate_service: CandidateService, food_repository: InMemoryFoodRepository
) -> None:
    egg = food_repository.add(make_food("Egg"), units=[FoodUnit("1 large", 50)])

    foods = candidate_service.load_foods([egg.id, egg.id, uuid4()])

    assert list(foods) == [egg.id]
    assert foods[egg.id].units == (FoodUnit("1 large", 50),)


def test_load_foods_attaches_personal_overrides_first(
    candidate_service: CandidateService, food_repository: InMemoryFoodRepository
) -> None:
    user_id = uuid4()
    flour = food_repository.add(make_food("Flour"))
    shared = PortionOverride("cup", 120)
    personal = PortionOverride("cup", 150, user_id=user_id)
    other = PortionOverride("cup", 90, user_id=uuid4())
    food_repository.overrides[flour.id] = [shared, other, personal]

    anonymous = candidate_service.load_foods([flour.id])
    for_user = candidate_service.load_foods([flour.id], user_id)

    assert anonymous[flour.id].portion_overrides == (shared,)
    assert for_user[flour.id].portion_overrides == (personal, shared)
