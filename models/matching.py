"""
Enumerations shared by the matcher, the scorer and the import payload.
"""

from enum import Enum


class MatchMethod(str, Enum):
    """How a catalog row was resolved to a canonical product."""
    EXACT_IDENTIFIER = "EXACT_IDENTIFIER"
    FUZZY_NAME = "FUZZY_NAME"
    NONE = "NONE"


class IssueTag(str, Enum):
    """Advisory flags attached to a row for the reviewer."""
    LOW_CONFIDENCE = "low-confidence"
    NO_GTIN = "no-gtin"
    FUZZY_MATCH = "fuzzy-match"
    MISSING_DATA = "missing-data"
    DUPLICATE_SUSPECT = "duplicate-suspect"
    NEEDS_REVIEW = "needs-review"


class GtinType(str, Enum):
    """Trade identifier kind, by digit count."""
    GTIN_8 = "GTIN-8"
    GTIN_12 = "GTIN-12"
    GTIN_13 = "GTIN-13"
    GTIN_14 = "GTIN-14"
