"""Parsed ingredient line model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ParsedIngredientLine:
    """Structured view of one raw ingredient line.

    ``unit`` holds the normalized unit ("cup", "g", "large") or an empty
    string when the line has none; ``raw_unit`` keeps the token as typed.
    ``multiplier`` comes from words such as "half" following the quantity.
    """

    qty: float
    unit: str
    name: str
    raw_unit: str | None = None
    qualifiers: tuple[str, ...] = ()
    unit_hint: str | None = None
    multiplier: float = 1.0

    @property
    def effective_qty(self) -> float:
        """Quantity with the multiplier applied."""
        return self.qty * self.multiplier

    @classmethod
    def degenerate(cls, text: str) -> "ParsedIngredientLine":
        """Fallback line for empty or unparseable input."""
        return cls(qty=1.0, unit="", name=text.strip())
