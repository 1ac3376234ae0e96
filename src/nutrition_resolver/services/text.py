"""Food name normalization and fuzzy similarity."""

import re

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_BARCODE_SEPARATORS = re.compile(r"[\s-]")
_BARCODE = re.compile(r"\d{8,14}")


def normalize(value: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    lowered = value.lower()
    stripped = _NON_ALNUM.sub(" ", lowered)
    return _WHITESPACE.sub(" ", stripped).strip()


def tokens(value: str) -> set[str]:
    """Return the token set of a normalized name."""
    return set(normalize(value).split())


def similarity(left: str, right: str) -> float:
    """Jaccard similarity of the token sets of two names."""
    left_tokens = tokens(left)
    right_tokens = tokens(right)
    union = left_tokens | right_tokens
    if not union:
        return 0.0
    return len(left_tokens & right_tokens) / len(union)


def as_barcode(value: str) -> str | None:
    """Return the cleaned code when the input looks like an 8-14 digit barcode."""
    cleaned = _BARCODE_SEPARATORS.sub("", value)
    if _BARCODE.fullmatch(cleaned):
        return cleaned
    return None
