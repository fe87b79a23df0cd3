"""
Unit tests for MatchScorer.

Run: pytest tests/unit/test_match_scoring.py -v
"""

import pytest

from models.matching import MatchMethod, IssueTag
from parsers.catalog_parser import CatalogRow
from services.match_scoring_service import MatchScorer, NO_MATCH_ERROR
from services.product_matcher_service import MatchCandidate, MatchResult
from utils.gtin_utils import validate_gtin
from tests.factories import ProductFactory, GTIN_13


def full_row(**overrides) -> CatalogRow:
    fields = {"row_index": 0, "sku": "SKU1", "gtin": GTIN_13, "name": "Widget", "brand": "Acme"}
    fields.update(overrides)
    return CatalogRow(**fields)


def matched(method=MatchMethod.EXACT_IDENTIFIER, score=1.0, gtin=GTIN_13, product_gtin=GTIN_13, duplicates=1):
    products = [ProductFactory.build(gtin=product_gtin) for _ in range(duplicates)]
    candidates = [MatchCandidate(product=p, method=method, score=score) for p in products]
    return MatchResult(
        gtin=validate_gtin(gtin),
        candidate=candidates[0],
        candidates=candidates,
        duplicate_suspect=duplicates > 1,
    )


class TestScoreMatched:
    """Scoring of accepted matches."""

    def test_clean_exact_match_needs_no_review(self):
        # Arrange
        scorer = MatchScorer()
        match = matched()

        # Act
        outcome = scorer.score(match, full_row())

        # Assert
        assert outcome.matched is True
        assert outcome.method == MatchMethod.EXACT_IDENTIFIER
        assert outcome.confidence == 1.0
        assert outcome.needs_review is False
        assert outcome.issues == []
        assert outcome.errors == []

    @pytest.mark.parametrize("score", [0.70, 0.89, 0.95, 1.0])
    def test_fuzzy_match_always_needs_review(self, score):
        scorer = MatchScorer()
        match = matched(method=MatchMethod.FUZZY_NAME, score=score)

        outcome = scorer.score(match, full_row())

        assert outcome.needs_review is True
        assert IssueTag.FUZZY_MATCH in outcome.issues
        assert IssueTag.NEEDS_REVIEW in outcome.issues
        assert outcome.confidence == score

    def test_low_confidence_below_threshold(self):
        scorer = MatchScorer(review_threshold=0.90)

        outcome = scorer.score(matched(method=MatchMethod.FUZZY_NAME, score=0.85), full_row())

        assert IssueTag.LOW_CONFIDENCE in outcome.issues

    def test_score_at_threshold_is_not_low_confidence(self):
        scorer = MatchScorer(review_threshold=0.90)

        outcome = scorer.score(matched(method=MatchMethod.FUZZY_NAME, score=0.90), full_row())

        assert IssueTag.LOW_CONFIDENCE not in outcome.issues

    def test_product_without_gtin_flagged(self):
        scorer = MatchScorer()
        match = matched(method=MatchMethod.FUZZY_NAME, score=0.95, gtin=None, product_gtin=None)

        outcome = scorer.score(match, full_row(gtin=None))

        assert IssueTag.NO_GTIN in outcome.issues

    def test_missing_row_fields_flagged(self):
        scorer = MatchScorer()

        outcome = scorer.score(matched(), full_row(sku=None))

        assert outcome.needs_review is True
        assert IssueTag.MISSING_DATA in outcome.issues
        assert "Missing fields: sku" in outcome.warnings

    def test_duplicate_suspect_flagged(self):
        scorer = MatchScorer()

        outcome = scorer.score(matched(duplicates=2), full_row())

        assert outcome.needs_review is True
        assert IssueTag.DUPLICATE_SUSPECT in outcome.issues
        assert outcome.confidence == 1.0

    def test_needs_review_tag_is_last(self):
        scorer = MatchScorer()

        outcome = scorer.score(matched(method=MatchMethod.FUZZY_NAME, score=0.8), full_row())

        assert outcome.issues[-1] == IssueTag.NEEDS_REVIEW
        assert outcome.issues.count(IssueTag.NEEDS_REVIEW) == 1

    def test_invalid_gtin_is_warning_when_name_matched(self):
        scorer = MatchScorer()
        match = matched(method=MatchMethod.FUZZY_NAME, score=0.95, gtin="6291041500214")

        outcome = scorer.score(match, full_row(gtin="6291041500214"))

        assert outcome.errors == []
        assert "Invalid check digit. Expected 3, got 4." in outcome.warnings


class TestScoreUnmatched:
    """Scoring when nothing cleared its floor."""

    def test_no_match_is_error(self):
        scorer = MatchScorer()
        match = MatchResult(gtin=validate_gtin(None))

        outcome = scorer.score(match, full_row(gtin=None, brand=None))

        assert outcome.matched is False
        assert outcome.method == MatchMethod.NONE
        assert outcome.confidence == 0.0
        assert outcome.errors == [NO_MATCH_ERROR]
        assert outcome.needs_review is False

    def test_bad_check_digit_reported_as_error(self):
        scorer = MatchScorer()
        match = MatchResult(gtin=validate_gtin("6291041500214"))

        outcome = scorer.score(match, full_row(gtin="6291041500214", brand=None))

        assert outcome.errors[0] == "Invalid check digit. Expected 3, got 4."
        assert NO_MATCH_ERROR in outcome.errors

    def test_unmatched_with_name_and_brand_needs_review(self):
        """Enough to create the product by hand, so a human should look."""
        scorer = MatchScorer()

        outcome = scorer.score(MatchResult(gtin=validate_gtin(GTIN_13)), full_row())

        assert outcome.matched is False
        assert outcome.needs_review is True
        assert IssueTag.NEEDS_REVIEW in outcome.issues


class TestScorerConfig:

    def test_rejects_threshold_outside_unit_interval(self):
        with pytest.raises(ValueError):
            MatchScorer(review_threshold=1.2)
