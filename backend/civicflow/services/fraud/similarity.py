"""Normalized string similarity for cross-document comparisons."""

import re
from difflib import SequenceMatcher
from typing import Any

_NON_ALNUM = re.compile(r"[^0-9a-z\s]+")
_WHITESPACE = re.compile(r"\s+")
_NON_IDENTIFIER = re.compile(r"[^0-9a-z]+")


def normalize_text(value: Any) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    text = _NON_ALNUM.sub("", str(value).lower())
    return _WHITESPACE.sub(" ", text).strip()


def normalize_identifier(value: Any) -> str:
    """Reduce an identifier such as an EIN to its lowercase letters and digits."""
    return _NON_IDENTIFIER.sub("", str(value).lower())


def similarity(left: Any, right: Any) -> float:
    """
    Similarity ratio between two values after normalization.

    Returns:
        1.0 for identical normalized text, down to 0.0 for nothing in common
    """
    a, b = normalize_text(left), normalize_text(right)
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return round(SequenceMatcher(None, a, b).ratio(), 4)
