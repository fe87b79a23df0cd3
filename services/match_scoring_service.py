"""
Confidence scoring and issue detection.

Turns a MatchResult into the row's MatchOutcome. Issue tags are advisory:
they decide needs_review, never whether a match is persisted.
"""

from dataclasses import dataclass, field
from typing import Optional
import structlog

from models.matching import MatchMethod, IssueTag
from parsers.catalog_parser import CatalogRow
from services.product_matcher_service import MatchResult

logger = structlog.get_logger(__name__)

DEFAULT_REVIEW_THRESHOLD = 0.90

NO_MATCH_ERROR = "No matching product found"


@dataclass
class MatchOutcome:
    """The single accepted result for a row."""
    product_id: Optional[str]
    method: MatchMethod
    confidence: float
    needs_review: bool = False
    issues: list[IssueTag] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.product_id is not None


class MatchScorer:
    """
    Scores matches and derives review flags.

    needs_review is set when any of:
        - confidence below the review threshold
        - the match was fuzzy (always, regardless of score)
        - the matched product has no GTIN
        - expected row fields are blank
        - several products share the row's GTIN
    """

    def __init__(self, review_threshold: float = DEFAULT_REVIEW_THRESHOLD):
        if not 0 <= review_threshold <= 1:
            raise ValueError(f"review_threshold must be within [0, 1], got {review_threshold}")
        self.review_threshold = review_threshold

    def score(self, match: MatchResult, row: CatalogRow) -> MatchOutcome:
        gtin_error = match.gtin.error if row.gtin else None

        if not match.matched:
            return self._unmatched(row, gtin_error)

        candidate = match.candidate
        confidence = max(0.0, min(1.0, candidate.score))

        issues: list[IssueTag] = []
        if confidence < self.review_threshold:
            issues.append(IssueTag.LOW_CONFIDENCE)
        if not candidate.product.has_gtin:
            issues.append(IssueTag.NO_GTIN)
        if candidate.method == MatchMethod.FUZZY_NAME:
            issues.append(IssueTag.FUZZY_MATCH)
        if row.missing_fields:
            issues.append(IssueTag.MISSING_DATA)
        if match.duplicate_suspect:
            issues.append(IssueTag.DUPLICATE_SUSPECT)

        needs_review = bool(issues)
        if needs_review:
            issues.append(IssueTag.NEEDS_REVIEW)

        warnings = []
        if gtin_error:
            # Identifier was unusable but the name still matched
            warnings.append(gtin_error)
        if match.duplicate_suspect:
            warnings.append(
                f"{len(match.candidates)} products share GTIN {match.gtin.normalized_gtin}; "
                f"linked to the oldest"
            )
        if row.missing_fields:
            warnings.append(f"Missing fields: {', '.join(row.missing_fields)}")

        logger.debug(
            "row_scored",
            row_index=row.row_index,
            confidence=confidence,
            issues=[tag.value for tag in issues]
        )

        return MatchOutcome(
            product_id=candidate.product_id,
            method=candidate.method,
            confidence=confidence,
            needs_review=needs_review,
            issues=issues,
            warnings=warnings,
        )

    def _unmatched(self, row: CatalogRow, gtin_error: Optional[str]) -> MatchOutcome:
        """
        No product cleared its floor.

        Rows carrying enough to create a product (name and brand) are
        flagged for a human to create or link one; the rest just fail.
        """
        errors = []
        if gtin_error:
            errors.append(gtin_error)
        errors.append(NO_MATCH_ERROR)

        issues: list[IssueTag] = []
        if row.missing_fields:
            issues.append(IssueTag.MISSING_DATA)

        needs_review = bool(row.name and row.brand)
        if needs_review:
            issues.append(IssueTag.NEEDS_REVIEW)

        return MatchOutcome(
            product_id=None,
            method=MatchMethod.NONE,
            confidence=0.0,
            needs_review=needs_review,
            issues=issues,
            errors=errors,
        )
