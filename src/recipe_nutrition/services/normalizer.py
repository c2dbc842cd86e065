"""Query normalization and tokenization for retrieval and ranking."""

import re

_PUNCTUATION = re.compile(r"[^\w\s-]|_")
_EDGE_HYPHENS = re.compile(r"(?<![\w])-+|-+(?![\w])")
_WHITESPACE = re.compile(r"\s+")


def normalize_query(text: str | None) -> str:
    """Lowercase, drop punctuation except internal hyphens, collapse spaces."""
    if not text:
        return ""
    cleaned = _PUNCTUATION.sub(" ", text.lower())
    cleaned = _EDGE_HYPHENS.sub(" ", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def query_tokens(text: str | None) -> tuple[str, ...]:
    """Return unique normalized tokens in first-occurrence order."""
    return tuple(dict.fromkeys(normalize_query(text).split()))
