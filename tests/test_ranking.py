"""Tests for the candidate ranking engine."""

from dataclasses import replace

import pytest

from recipe_nutrition.domain.foods import FoodSource, Verification
from recipe_nutrition.services.parser import parse_ingredient_line
from recipe_nutrition.services.plausibility import KcalBand, kcal_band_for_query
from recipe_nutrition.services.ranking import (
    DEFAULT_WEIGHTS,
    compute_signals,
    fuzzy_similarity,
    rank_candidates,
)
from tests.conftest import make_food


def test_no_candidates_ranks_to_empty_list() -> None:
    assert rank_candidates([], "anything") == []


def test_verified_cooked_candidate_beats_unverified_raw_template() -> None:
    parsed = parse_ingredient_line("chicken breast, cooked")
    cooked = make_food(
        "Chicken breast, cooked",
        source=FoodSource.SEED,
        verification=Verification.VERIFIED,
        kcal100=165,
    )
    raw = make_food(
        "Chicken breast",
        source=FoodSource.TEMPLATE,
        verification=Verification.UNVERIFIED,
        kcal100=120,
    )
    _, band = kcal_band_for_query(parsed.name)

    ranked = rank_candidates(
        [raw, cooked],
        parsed.name,
        unit_hint=parsed.unit_hint,
        qualifiers=parsed.qualifiers,
        band=band,
    )

    assert [item.candidate.id for item in ranked] == [cooked.id, raw.id]


def test_confidence_is_bounded() -> None:
    candidates = [
        make_food(
            "Kirkland olive oil",
            brand="Kirkland",
            aliases=frozenset({"kirkland olive oil"}),
            barcodes=frozenset({"0961"}),
            popularity=10_000,
            used_by_user_count=500,
            kcal100=800,
        ),
        make_food("Chocolate cake", verification=Verification.SUSPECT, kcal100=0),
    ]

    ranked = rank_candidates(
        candidates,
        "kirkland olive oil 0961",
        band=KcalBand(700, 900),
    )

    assert all(0.0 <= item.confidence <= 1.0 for item in ranked)
    assert ranked[0].confidence == 1.0


@pytest.mark.parametrize("popularity", [0, 1, 10, 49, 50, 500])
def test_more_popularity_never_lowers_the_score(popularity: int) -> None:
    base = make_food("Oat milk", popularity=popularity)
    boosted = replace(base, popularity=popularity + 25)

    low = rank_candidates([base], "oat milk")[0].score
    high = rank_candidates([boosted], "oat milk")[0].score

    assert high >= low


def test_ties_keep_input_order() -> None:
    first = make_food("Banana")
    second = make_food("Banana")

    ranked = rank_candidates([first, second], "banana")

    assert ranked[0].score == ranked[1].score
    assert [item.candidate.id for item in ranked] == [first.id, second.id]


def test_barcode_match_ranks_first() -> None:
    plain = make_food("Protein bar")
    scanned = make_food("Protein bar", barcodes=frozenset({"0123456789012"}))

    ranked = rank_candidates([plain, scanned], "0123456789012")

    assert ranked[0].candidate.id == scanned.id


def test_exact_signals() -> None:
    food = make_food(
        "Extra virgin olive oil",
        brand="Kirkland",
        aliases=frozenset({"EVOO"}),
    )

    alias_signals = compute_signals(food, "evoo", fuzzy=0.0)
    brand_signals = compute_signals(food, "Kirkland olive oil", fuzzy=0.0)

    assert alias_signals.exact_alias == 1.0
    assert alias_signals.exact_brand == 0.0
    assert brand_signals.exact_brand == 1.0
    assert brand_signals.token == pytest.approx(1.0)


def test_verification_and_saturating_signals() -> None:
    suspect = make_food("Tofu", verification=Verification.SUSPECT, popularity=50)
    signals = compute_signals(suspect, "tofu", fuzzy=1.0)

    assert signals.verified == pytest.approx(0.2)
    assert signals.popularity == pytest.approx(0.7616, abs=1e-4)
    assert signals.personal == 0.0
    assert signals.plausibility == 0.5


def test_hint_signal_counts_unit_hint_and_qualifiers() -> None:
    food = make_food("Egg yolk, raw")

    signals = compute_signals(
        food, "egg", fuzzy=1.0, unit_hint="yolk", qualifiers=("raw", "beaten")
    )

    assert signals.hint == pytest.approx(2 / 3)


def test_fuzzy_scores_are_batched_by_index() -> None:
    candidates = [make_food("Chicken thigh"), make_food("Olive oil")]

    scores = fuzzy_similarity(candidates, "chicken")

    assert scores[0] == pytest.approx(1.0)
    assert 1 not in scores


def test_confidence_uses_the_weights_normalizer() -> None:
    food = make_food("Rice")
    ranked = rank_candidates([food], "rice")[0]

    assert DEFAULT_WEIGHTS.confidence_normalizer == 9.7
    assert ranked.confidence == pytest.approx(ranked.score / 9.7)
