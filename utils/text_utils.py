"""
Text utilities for comparing product names.

Supplier files spell the same product many ways:
    "Nitrile Gloves, Size M (100 pcs)"
    "NITRILE GLOVES SIZE M 100PCS"
    "Nitril-Handschuhe M"
Names are folded to a comparable form before fuzzy scoring.
"""

import re
import unicodedata
from typing import Optional

from rapidfuzz import fuzz

_PUNCTUATION = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")

def normalize_product_name(name: Optional[str]) -> str:
    """
    Normalize a product name for comparison.

    - Decompose and drop accent marks ("Crème" → "creme")
    - Case-fold
    - Replace punctuation with spaces
    - Collapse whitespace

    Args:
        name: Raw product name (may be None)

    Returns:
        Normalized name, or "" for empty input
    """
    if not name:
        return ""

    normalized = unicodedata.normalize("NFD", name)
    ascii_name = "".join(
        c for c in normalized
        if unicodedata.category(c) != "Mn"
    )

    folded = ascii_name.casefold()
    folded = _PUNCTUATION.sub(" ", folded)
    return _WHITESPACE.sub(" ", folded).strip()

def name_similarity(left: Optional[str], right: Optional[str]) -> float:
    """
    Similarity of two product names in [0, 1].

    Token-sort ratio over the normalized names, so word order does not
    matter but every token counts.
    """
    a = normalize_product_name(left)
    b = normalize_product_name(right)
    if not a or not b:
        return 0.0
    return round(fuzz.token_sort_ratio(a, b) / 100.0, 4)
