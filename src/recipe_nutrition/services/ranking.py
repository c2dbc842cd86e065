"""Multi-signal ranking of food candidates against an ingredient query."""

import math
from collections.abc import Sequence
from dataclasses import dataclass

from fuzzywuzzy import fuzz, process

from recipe_nutrition.domain.foods import FoodCandidate, RankedCandidate, Verification
from recipe_nutrition.services.normalizer import normalize_query, query_tokens
from recipe_nutrition.services.plausibility import KcalBand, plausibility_score

FUZZY_SCORE_CUTOFF = 60

VERIFICATION_SCORES = {
    Verification.VERIFIED: 1.0,
    Verification.UNVERIFIED: 0.6,
    Verification.SUSPECT: 0.2,
}


@dataclass(frozen=True)
class RankingWeights:
    """Signal weights together with the score-to-confidence normalizer.

    ``confidence_normalizer`` is calibrated against these weights and has to
    be re-derived whenever any of them change.
    """

    barcode: float = 3.0
    exact_brand: float = 1.5
    exact_alias: float = 1.2
    fuzzy: float = 2.0
    plausibility: float = 1.0
    verified: float = 0.8
    popularity: float = 0.7
    personal: float = 1.0
    token: float = 1.2
    hint: float = 0.6
    confidence_normalizer: float = 9.7


DEFAULT_WEIGHTS = RankingWeights()


@dataclass(frozen=True)
class RankingSignals:
    """Per-candidate signal values, each in [0, 1]."""

    barcode: float
    exact_brand: float
    exact_alias: float
    fuzzy: float
    plausibility: float
    verified: float
    popularity: float
    personal: float
    token: float
    hint: float

    def score(self, weights: RankingWeights) -> float:
        """Weighted sum of all signals."""
        return math.fsum(
            (
                weights.barcode * self.barcode,
                weights.exact_brand * self.exact_brand,
                weights.exact_alias * self.exact_alias,
                weights.fuzzy * self.fuzzy,
                weights.plausibility * self.plausibility,
                weights.verified * self.verified,
                weights.popularity * self.popularity,
                weights.personal * self.personal,
                weights.token * self.token,
                weights.hint * self.hint,
            )
        )


def rank_candidates(
    candidates: Sequence[FoodCandidate],
    query: str,
    *,
    unit_hint: str | None = None,
    qualifiers: Sequence[str] = (),
    band: KcalBand | None = None,
    weights: RankingWeights = DEFAULT_WEIGHTS,
) -> list[RankedCandidate]:
    """Score candidates for a query and return them best first.

    Ties keep the input order. An empty candidate list ranks to an empty
    list; the caller decides how to surface that.
    """
    if not candidates:
        return []
    fuzzy_scores = fuzzy_similarity(candidates, query)
    ranked: list[RankedCandidate] = []
    for index, candidate in enumerate(candidates):
        signals = compute_signals(
            candidate,
            query,
            fuzzy=fuzzy_scores.get(index, 0.0),
            unit_hint=unit_hint,
            qualifiers=qualifiers,
            band=band,
        )
        score = signals.score(weights)
        confidence = min(1.0, max(0.0, score / weights.confidence_normalizer))
        ranked.append(
            RankedCandidate(candidate=candidate, score=score, confidence=confidence)
        )
    return sorted(ranked, key=lambda item: item.score, reverse=True)


def fuzzy_similarity(
    candidates: Sequence[FoodCandidate], query: str
) -> dict[int, float]:
    """Match the query against every candidate's text in one pass.

    Returns similarity in [0, 1] keyed by candidate index; candidates below
    the cutoff are absent.
    """
    normalized = normalize_query(query)
    if not normalized:
        return {}
    choices = {
        index: candidate_text(candidate) for index, candidate in enumerate(candidates)
    }
    matches = process.extractBests(
        normalized,
        choices,
        scorer=fuzz.token_set_ratio,
        score_cutoff=FUZZY_SCORE_CUTOFF,
        limit=None,
    )
    return {index: score / 100 for _, score, index in matches}


def candidate_text(candidate: FoodCandidate) -> str:
    """Joined "brand name aliases" text used for fuzzy matching."""
    parts = [candidate.brand or "", candidate.name, *sorted(candidate.aliases)]
    return normalize_query(" ".join(part for part in parts if part))


def compute_signals(
    candidate: FoodCandidate,
    query: str,
    *,
    fuzzy: float,
    unit_hint: str | None = None,
    qualifiers: Sequence[str] = (),
    band: KcalBand | None = None,
) -> RankingSignals:
    normalized = normalize_query(query)
    return RankingSignals(
        barcode=_barcode_signal(candidate, query),
        exact_brand=_brand_signal(candidate, normalized),
        exact_alias=_alias_signal(candidate, normalized),
        fuzzy=fuzzy,
        plausibility=plausibility_score(candidate.kcal100, band),
        verified=VERIFICATION_SCORES[candidate.verification],
        popularity=math.tanh(max(candidate.popularity, 0) / 50),
        personal=math.tanh(max(candidate.used_by_user_count, 0) / 10),
        token=_token_signal(candidate, normalized),
        hint=_hint_signal(candidate, unit_hint, qualifiers),
    )


def _barcode_signal(candidate: FoodCandidate, query: str) -> float:
    digits = "".join(char for char in query if char.isdigit())
    if not digits:
        return 0.0
    return 1.0 if digits in candidate.barcodes else 0.0


def _brand_signal(candidate: FoodCandidate, normalized_query: str) -> float:
    brand = normalize_query(candidate.brand)
    if not brand:
        return 0.0
    return 1.0 if brand in normalized_query else 0.0


def _alias_signal(candidate: FoodCandidate, normalized_query: str) -> float:
    if not normalized_query:
        return 0.0
    aliases = {normalize_query(alias) for alias in candidate.aliases}
    return 1.0 if normalized_query in aliases else 0.0


def _token_signal(candidate: FoodCandidate, normalized_query: str) -> float:
    tokens = query_tokens(normalized_query)
    if not tokens:
        return 0.0
    haystack = normalize_query(f"{candidate.brand or ''} {candidate.name}")
    hits = sum(1 for token in tokens if token in haystack)
    return min(1.0, hits / len(tokens))


def _hint_signal(
    candidate: FoodCandidate, unit_hint: str | None, qualifiers: Sequence[str]
) -> float:
    terms = [normalize_query(term) for term in (unit_hint, *qualifiers) if term]
    terms = [term for term in terms if term]
    if not terms:
        return 0.0
    haystack = normalize_query(" ".join([candidate.name, *candidate.aliases]))
    hits = sum(1 for term in terms if term in haystack)
    return hits / len(terms)
