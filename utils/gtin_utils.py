"""
Trade identifier (GTIN) validation utilities.

Supports GTIN-8, GTIN-12 (UPC), GTIN-13 (EAN) and GTIN-14.

Check digit (GS1 mod-10):
    - Drop the check digit and reverse the remaining digits
    - Multiply alternately by 3, 1, 3, 1, ... starting from the right
    - Check digit = (10 - (sum mod 10)) mod 10

Examples:
    validate_gtin("6291041500213")  → valid, GTIN-13
    validate_gtin("629-1041-500213") → valid, separators stripped
    validate_gtin("6291041500214")  → invalid check digit (expected 3)
    normalize_to_gtin14("96385074")  → "00000096385074"
"""

import re
from dataclasses import dataclass
from typing import Optional

from models.matching import GtinType

VALID_GTIN_LENGTHS = (8, 12, 13, 14)

_GTIN_TYPES = {
    8: GtinType.GTIN_8,
    12: GtinType.GTIN_12,
    13: GtinType.GTIN_13,
    14: GtinType.GTIN_14,
}

_SEPARATORS = re.compile(r"[\s\-.]")


@dataclass(frozen=True)
class GtinValidationResult:
    """
    Outcome of validating one identifier.

    A valid result always has normalized_gtin; an invalid one never does.
    """
    valid: bool
    normalized_gtin: Optional[str] = None
    gtin_type: Optional[GtinType] = None
    error: Optional[str] = None

    def __post_init__(self):
        if self.valid and not self.normalized_gtin:
            raise ValueError("valid GTIN result requires normalized_gtin")
        if not self.valid and self.normalized_gtin:
            raise ValueError("invalid GTIN result cannot carry normalized_gtin")


def clean_gtin(value: str) -> str:
    """Strip spaces, dashes and dots."""
    return _SEPARATORS.sub("", value or "")


def calculate_check_digit(digits_without_check: str) -> int:
    """Compute the mod-10 check digit for a digit string without its check digit."""
    total = 0
    for position, char in enumerate(reversed(digits_without_check)):
        multiplier = 3 if position % 2 == 0 else 1
        total += int(char) * multiplier
    return (10 - (total % 10)) % 10


def validate_gtin(value: Optional[str]) -> GtinValidationResult:
    """
    Fully validate a trade identifier, including its check digit.

    Args:
        value: Raw identifier as it appeared in the file

    Returns:
        GtinValidationResult
    """
    if value is None or not value.strip():
        return GtinValidationResult(valid=False, error="GTIN is required")

    cleaned = clean_gtin(value)

    if not cleaned.isdigit() or not cleaned.isascii():
        return GtinValidationResult(valid=False, error="GTIN must contain only digits")

    if len(cleaned) not in VALID_GTIN_LENGTHS:
        return GtinValidationResult(
            valid=False,
            error=f"GTIN must be 8, 12, 13, or 14 digits. Got {len(cleaned)} digits."
        )

    expected = calculate_check_digit(cleaned[:-1])
    provided = int(cleaned[-1])
    if provided != expected:
        return GtinValidationResult(
            valid=False,
            error=f"Invalid check digit. Expected {expected}, got {provided}."
        )

    return GtinValidationResult(
        valid=True,
        normalized_gtin=cleaned,
        gtin_type=_GTIN_TYPES[len(cleaned)],
    )


def normalize_to_gtin14(value: Optional[str]) -> Optional[str]:
    """Left-pad a valid identifier to 14 digits. None if invalid."""
    result = validate_gtin(value)
    if not result.valid:
        return None
    return result.normalized_gtin.zfill(14)


def are_gtins_equivalent(first: Optional[str], second: Optional[str]) -> bool:
    """Two identifiers are equivalent when both are valid and pad to the same GTIN-14."""
    left = normalize_to_gtin14(first)
    right = normalize_to_gtin14(second)
    return left is not None and left == right


def is_gtin_like(value: Optional[str]) -> bool:
    """
    Cheap format pre-filter: 8 to 14 digits after stripping separators.

    Does not check the check digit. Never use in place of validate_gtin().
    """
    cleaned = clean_gtin(value or "")
    return cleaned.isdigit() and cleaned.isascii() and 8 <= len(cleaned) <= 14


def generate_check_digit(partial: str) -> Optional[int]:
    """
    Check digit for an identifier given without it.

    Returns None unless the completed identifier would have a valid length.
    """
    cleaned = clean_gtin(partial)
    if not cleaned.isdigit() or len(cleaned) + 1 not in VALID_GTIN_LENGTHS:
        return None
    return calculate_check_digit(cleaned)


def format_gtin_for_display(value: str) -> str:
    """
    Group digits for display.

    GTIN-13: X XXXXXX XXXXX X
    GTIN-14: X XX XXXXX XXXXX X
    Other valid lengths are returned cleaned; invalid input as-is.
    """
    result = validate_gtin(value)
    if not result.valid:
        return value

    gtin = result.normalized_gtin
    if len(gtin) == 13:
        return f"{gtin[0]} {gtin[1:7]} {gtin[7:12]} {gtin[12]}"
    if len(gtin) == 14:
        return f"{gtin[0]} {gtin[1:3]} {gtin[3:8]} {gtin[8:13]} {gtin[13]}"
    return gtin
