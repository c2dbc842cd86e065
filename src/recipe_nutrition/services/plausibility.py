"""Expected calorie bands per 100 g derived from query keywords."""

import re
from dataclasses import dataclass

NEUTRAL_SCORE = 0.5


@dataclass(frozen=True)
class KcalBand:
    """Inclusive kcal-per-100g range a plausible match should fall into."""

    min: float
    max: float

    @property
    def mid(self) -> float:
        return (self.min + self.max) / 2

    @property
    def half_span(self) -> float:
        return (self.max - self.min) / 2


DEFAULT_BAND = KcalBand(0, 900)

# Checked top to bottom, first match wins.
KCAL_BAND_RULES: tuple[tuple[str, re.Pattern[str], KcalBand], ...] = (
    (
        "oils_fats",
        re.compile(r"\b(oil|butter|lard|ghee|shortening|tallow)\b"),
        KcalBand(700, 900),
    ),
    (
        "starches",
        re.compile(
            r"\b(rice|pasta|spaghetti|noodles?|flour|oats?|oatmeal|bread|"
            r"potato(es)?|quinoa|couscous|barley|tortillas?)\b"
        ),
        KcalBand(80, 400),
    ),
    (
        "protein_powders",
        re.compile(r"\b(protein powder|whey|casein|isolate)\b"),
        KcalBand(300, 450),
    ),
    (
        "nonfat_dairy",
        re.compile(
            r"\b(nonfat|non-fat|skim|fat-free|fat free)\b.*\b(milk|yogh?urt|cheese)\b"
            r"|\b(milk|yogh?urt|cheese)\b.*\b(nonfat|non-fat|skim|fat-free|fat free)\b"
        ),
        KcalBand(20, 200),
    ),
)


def kcal_band_for_query(query: str) -> tuple[str, KcalBand]:
    """Return the (rule name, band) of the first rule matching the query."""
    lowered = query.lower()
    for name, pattern, band in KCAL_BAND_RULES:
        if pattern.search(lowered):
            return name, band
    return "default", DEFAULT_BAND


def plausibility_score(kcal100: float, band: KcalBand | None) -> float:
    """Score how well ``kcal100`` fits the band, peaking at its midpoint."""
    if band is None:
        return NEUTRAL_SCORE
    if kcal100 < band.min or kcal100 > band.max:
        return 0.0
    if band.half_span == 0:
        return 1.0
    return max(0.0, 1.0 - abs(kcal100 - band.mid) / band.half_span)
