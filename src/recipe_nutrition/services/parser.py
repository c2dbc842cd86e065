"""Parse free-text ingredient lines into quantity, unit, name and qualifiers."""

import math
import re

from recipe_nutrition.domain.parsing import ParsedIngredientLine
from recipe_nutrition.services.units import lookup_unit

UNICODE_FRACTIONS: dict[str, float] = {
    "½": 0.5,
    "¼": 0.25,
    "¾": 0.75,
    "⅓": 1 / 3,
    "⅔": 2 / 3,
    "⅛": 0.125,
    "⅜": 0.375,
    "⅝": 0.625,
    "⅞": 0.875,
}

WORD_FRACTIONS: dict[str, float] = {"half": 0.5, "quarter": 0.25, "third": 1 / 3}

WORD_NUMBERS: dict[str, float] = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "dozen": 12,
}

RANGE_WORDS = frozenset({"-", "–", "—", "to"})

# Preparation words pulled out of the name; size words are count units instead.
PREP_QUALIFIERS = frozenset(
    {
        "raw",
        "cooked",
        "diced",
        "chopped",
        "minced",
        "sliced",
        "grated",
        "shredded",
        "boneless",
        "skinless",
        "bone-in",
        "skin-on",
        "finely",
        "coarsely",
        "roughly",
        "packed",
        "heaping",
        "level",
        "fresh",
        "frozen",
        "dried",
        "canned",
        "halved",
        "quartered",
        "peeled",
        "unpeeled",
        "seeded",
        "stemmed",
        "melted",
        "softened",
        "toasted",
    }
)

MULTI_WORD_QUALIFIERS = (
    ("finely", "chopped"),
    ("finely", "minced"),
    ("coarsely", "chopped"),
    ("roughly", "chopped"),
    ("thinly", "sliced"),
)

# (hint, trigger tokens, extra tokens removed with the hint, required companions)
UNIT_HINTS: tuple[tuple[str, frozenset[str], frozenset[str], frozenset[str]], ...] = (
    ("yolk", frozenset({"yolk", "yolks"}), frozenset({"egg", "eggs"}), frozenset()),
    (
        "white",
        frozenset({"white", "whites"}),
        frozenset({"egg", "eggs"}),
        frozenset({"egg", "eggs"}),
    ),
    ("leaf", frozenset({"leaf", "leaves"}), frozenset(), frozenset()),
    ("clove", frozenset({"clove", "cloves"}), frozenset(), frozenset()),
    ("sheet", frozenset({"sheet", "sheets"}), frozenset(), frozenset()),
    ("stalk", frozenset({"stalk", "stalks"}), frozenset(), frozenset()),
    ("slice", frozenset({"slice", "slices"}), frozenset(), frozenset()),
    ("piece", frozenset({"piece", "pieces"}), frozenset(), frozenset()),
)

_FRACTION_CHARS = "".join(UNICODE_FRACTIONS)
_NUMBER = re.compile(rf"^(\d+(?:\.\d+)?|\.\d+)([{_FRACTION_CHARS}])?$")
_SLASH_FRACTION = re.compile(r"^(\d+)/(\d+)$")
_RANGE_PART = rf"[\d.{_FRACTION_CHARS}/]+"
_RANGE_TOKEN = re.compile(rf"^({_RANGE_PART})[-–—]({_RANGE_PART})$")
_ATTACHED_UNIT = re.compile(r"^(\d+(?:\.\d+)?)(g|kg|mg|oz|lb|lbs|ml|l)$", re.IGNORECASE)
_PARENTHESES = re.compile(r"\(([^)]*)\)")
_DECIMAL_COMMA = re.compile(r"(\d),(\d)")
_SPACES = re.compile(r"[\u00a0\u2000-\u200a\u202f]")
_TWO_TOKEN_UNITS = {("fl", "oz"): "fl oz", ("fluid", "ounce"): "fluid ounce"}


def parse_ingredient_line(line: str | None) -> ParsedIngredientLine:
    """Parse one raw ingredient line.

    Never raises: empty input yields the degenerate line and input without a
    leading quantity keeps qty=1 with the whole text (minus qualifiers) as
    the name.
    """
    if not line or not line.strip():
        return ParsedIngredientLine.degenerate(line or "")

    text = _SPACES.sub(" ", line).strip()
    text = _DECIMAL_COMMA.sub(r"\1.\2", text)

    paren_qualifiers = [
        part.strip().lower()
        for content in _PARENTHESES.findall(text)
        for part in content.split(",")
        if part.strip()
    ]
    text = _PARENTHESES.sub(" ", text)

    main, *segments = text.split(",")
    comma_qualifiers = [seg.strip().lower() for seg in segments if seg.strip()]
    tokens = _split_tokens(main)

    qty = 1.0
    multiplier = 1.0
    unit = ""
    raw_unit: str | None = None
    rest = tokens

    measure = _take_measure(tokens)
    if measure is not None:
        qty, multiplier, unit, raw_unit, rest = measure

    inline_qualifiers, rest = _extract_qualifiers(rest)
    unit_hint, rest = _extract_unit_hint(rest)
    if measure is None:
        # Leading qualifiers or hint words can hide the quantity ("fresh 2 eggs").
        measure = _take_measure(rest)
        if measure is not None and measure[4]:
            qty, multiplier, unit, raw_unit, rest = measure
        else:
            measure = None
    if measure is not None:
        rest = _strip_leading_measures(rest)

    name = " ".join(rest).strip() or " ".join(tokens).strip()
    return ParsedIngredientLine(
        qty=qty,
        unit=unit,
        name=name,
        raw_unit=raw_unit,
        qualifiers=tuple(inline_qualifiers + comma_qualifiers + paren_qualifiers),
        unit_hint=unit_hint,
        multiplier=multiplier,
    )


def parse_quantity(text: str) -> float | None:
    """Parse a standalone quantity such as "1 1/2", "½" or "2-3"."""
    tokens = _split_tokens(text)
    result = _parse_quantity(tokens)
    if result is None or result[1] != len(tokens):
        return None
    return result[0]


def _split_tokens(text: str) -> list[str]:
    tokens: list[str] = []
    for token in text.split():
        attached = _ATTACHED_UNIT.match(token)
        if attached:
            tokens.extend([attached.group(1), attached.group(2)])
        else:
            tokens.append(token)
    return tokens


def _number(token: str) -> float | None:
    if token in UNICODE_FRACTIONS:
        return UNICODE_FRACTIONS[token]
    match = _NUMBER.match(token)
    if match:
        return float(match.group(1)) + UNICODE_FRACTIONS.get(match.group(2) or "", 0.0)
    return _fraction(token)


def _fraction(token: str) -> float | None:
    if token in UNICODE_FRACTIONS:
        return UNICODE_FRACTIONS[token]
    match = _SLASH_FRACTION.match(token)
    if match and int(match.group(2)) != 0:
        return int(match.group(1)) / int(match.group(2))
    return None


def _parse_quantity(tokens: list[str]) -> tuple[float, int] | None:
    """Return (quantity, tokens consumed) for a leading quantity."""
    if not tokens:
        return None
    head = tokens[0].lower()

    ranged = _RANGE_TOKEN.match(head)
    if ranged:
        low, high = _number(ranged.group(1)), _number(ranged.group(2))
        if low is not None and high is not None:
            return (low + high) / 2, 1

    if head in WORD_FRACTIONS:
        if len(tokens) > 1 and lookup_unit(tokens[1]) is not None:
            return WORD_FRACTIONS[head], 1
        return None

    value = WORD_NUMBERS.get(head)
    if value is None:
        value = _number(head)
    if value is None:
        return None

    following = [token.lower() for token in tokens[1:4]]
    if following == ["and", "a", "half"]:
        return value + 0.5, 4
    if len(following) >= 2 and following[0] == "and":
        extra = _fraction(following[1])
        if extra is not None:
            return value + extra, 3
    if len(following) >= 2 and following[0] in RANGE_WORDS:
        high = _number(following[1])
        if high is not None:
            return (value + high) / 2, 3
    if following and head.isdigit():
        extra = _fraction(following[0])
        if extra is not None:
            return value + extra, 2
    return value, 1


def _take_measure(
    tokens: list[str],
) -> tuple[float, float, str, str | None, list[str]] | None:
    """Return (qty, multiplier, unit, raw unit, rest) for a leading amount."""
    quantity = _parse_quantity(tokens)
    if quantity is None or not 0 < quantity[0] < math.inf:
        return None
    qty = quantity[0]
    multiplier = 1.0
    unit = ""
    raw_unit: str | None = None
    rest = tokens[quantity[1] :]

    if len(rest) > 1 and rest[0].lower() in WORD_FRACTIONS:
        multiplier = WORD_FRACTIONS[rest[0].lower()]
        rest = rest[1:]

    found = _match_unit(rest)
    if found is not None:
        unit, raw_unit, width = found
        # A trailing unit token stays in the name ("2 large").
        if len(rest) > width:
            rest = rest[width:]
    return qty, multiplier, unit, raw_unit, rest


def _match_unit(tokens: list[str]) -> tuple[str, str, int] | None:
    """Return (normalized unit, raw text, width) for a leading unit."""
    if len(tokens) >= 2:
        pair = (tokens[0].lower(), tokens[1].lower().rstrip("s."))
        if pair in _TWO_TOKEN_UNITS:
            unit = lookup_unit(_TWO_TOKEN_UNITS[pair])
            if unit is not None:
                return unit, f"{tokens[0]} {tokens[1]}", 2
    if tokens:
        unit = lookup_unit(tokens[0])
        if unit is not None:
            return unit, tokens[0], 1
    return None


def _extract_qualifiers(tokens: list[str]) -> tuple[list[str], list[str]]:
    qualifiers: list[str] = []
    remaining: list[str] = []
    index = 0
    while index < len(tokens):
        pair = tuple(token.lower() for token in tokens[index : index + 2])
        if pair in MULTI_WORD_QUALIFIERS:
            qualifiers.append(" ".join(pair))
            index += 2
            continue
        token = tokens[index]
        if token.lower() in PREP_QUALIFIERS:
            qualifiers.append(token.lower())
        else:
            remaining.append(token)
        index += 1
    if not remaining:
        return [], tokens
    return qualifiers, remaining


def _extract_unit_hint(tokens: list[str]) -> tuple[str | None, list[str]]:
    lowered = {token.lower() for token in tokens}
    for hint, triggers, removed, companions in UNIT_HINTS:
        if not lowered & triggers:
            continue
        if companions and not lowered & companions:
            continue
        drop = triggers | removed
        core = [token for token in tokens if token.lower() not in drop]
        if not core and removed:
            core = [sorted(removed)[0]]
        return hint, core or tokens
    return None, tokens


def _strip_leading_measures(tokens: list[str]) -> list[str]:
    """Drop residual quantity, unit and "of" tokens ahead of the name."""
    rest = tokens
    while len(rest) > 1:
        quantity = _parse_quantity(rest)
        if quantity is not None and quantity[1] < len(rest):
            rest = rest[quantity[1] :]
            continue
        found = _match_unit(rest)
        if found is not None and found[2] < len(rest):
            rest = rest[found[2] :]
            continue
        if rest[0].lower() == "of":
            rest = rest[1:]
            continue
        break
    return rest
