"""
Product matcher.

Resolves one catalog row to a canonical product. Strategies run in
priority order and the first one that clears its floor wins:

    1. Exact identifier  - row GTIN validates and equals a product GTIN
                           (any length, compared as GTIN-14). Score 1.0.
    2. Fuzzy name        - best name similarity over the linkable scope,
                           accepted at or above the fuzzy floor.

Matching is pure with respect to the catalog: it reads, never writes, and
never creates products. Safe to call from worker threads.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional
import structlog

from models.matching import MatchMethod
from models.product import ProductResponse
from parsers.catalog_parser import CatalogRow
from services.collaborators import ProductLookup
from utils.gtin_utils import GtinValidationResult
from utils.text_utils import name_similarity

logger = structlog.get_logger(__name__)

DEFAULT_FUZZY_FLOOR = 0.70


@dataclass(frozen=True)
class MatchCandidate:
    """A canonical product considered for a row."""
    product: ProductResponse
    method: MatchMethod
    score: float

    @property
    def product_id(self) -> str:
        return self.product.id


@dataclass
class MatchResult:
    """
    What the matcher found for one row.

    candidate is the accepted match, or None. candidates holds the best
    scored products (accepted or not) for the reviewer.
    """
    gtin: GtinValidationResult
    candidate: Optional[MatchCandidate] = None
    candidates: list[MatchCandidate] = field(default_factory=list)
    duplicate_suspect: bool = False

    @property
    def matched(self) -> bool:
        return self.candidate is not None

    @property
    def method(self) -> MatchMethod:
        return self.candidate.method if self.candidate else MatchMethod.NONE

    @property
    def score(self) -> float:
        return self.candidate.score if self.candidate else 0.0


class ProductMatcher:
    """
    Resolves rows against the canonical catalog.

    Args:
        catalog: Product lookup collaborator
        fuzzy_floor: Minimum similarity accepted by the fuzzy strategy
        similarity: Name similarity function returning [0, 1]
        max_candidates: Candidates kept for the reviewer
    """

    def __init__(
        self,
        catalog: ProductLookup,
        fuzzy_floor: float = DEFAULT_FUZZY_FLOOR,
        similarity: Callable[[str, str], float] = name_similarity,
        max_candidates: int = 5
    ):
        if not 0 <= fuzzy_floor <= 1:
            raise ValueError(f"fuzzy_floor must be within [0, 1], got {fuzzy_floor}")
        self.catalog = catalog
        self.fuzzy_floor = fuzzy_floor
        self.similarity = similarity
        self.max_candidates = max_candidates

    def match(
        self,
        row: CatalogRow,
        gtin_result: GtinValidationResult,
        floor: Optional[float] = None
    ) -> MatchResult:
        """
        Resolve a row.

        Args:
            row: Parsed catalog row
            gtin_result: Validation result of the row's identifier
            floor: Per-call override of the fuzzy floor

        Returns:
            MatchResult (candidate is None when nothing cleared its floor)
        """
        fuzzy_floor = self.fuzzy_floor if floor is None else floor

        # Stage 1: exact identifier
        if gtin_result.valid:
            result = self._match_exact(gtin_result)
            if result is not None:
                return result

        # Stage 2: fuzzy name
        if row.name:
            return self._match_fuzzy(row, gtin_result, fuzzy_floor)

        logger.debug("row_not_matched", row_index=row.row_index, reason="no_name")
        return MatchResult(gtin=gtin_result)

    def _match_exact(self, gtin_result: GtinValidationResult) -> Optional[MatchResult]:
        hits = self.catalog.find_by_gtin(gtin_result.normalized_gtin)
        if not hits:
            return None

        hits = sorted(hits, key=lambda p: (p.created_at, p.id))
        candidates = [
            MatchCandidate(product=p, method=MatchMethod.EXACT_IDENTIFIER, score=1.0)
            for p in hits
        ]

        if len(hits) > 1:
            logger.warning(
                "duplicate_gtin_in_catalog",
                gtin=gtin_result.normalized_gtin,
                product_ids=[p.id for p in hits]
            )

        return MatchResult(
            gtin=gtin_result,
            candidate=candidates[0],
            candidates=candidates[:self.max_candidates],
            duplicate_suspect=len(hits) > 1,
        )

    def _match_fuzzy(
        self,
        row: CatalogRow,
        gtin_result: GtinValidationResult,
        fuzzy_floor: float
    ) -> MatchResult:
        scope = self.catalog.find_name_candidates(row.name)

        scored = [
            MatchCandidate(
                product=product,
                method=MatchMethod.FUZZY_NAME,
                score=self.similarity(row.name, product.name),
            )
            for product in scope
        ]
        # Highest score first; ties go to the oldest product
        scored.sort(key=lambda c: (-c.score, c.product.created_at, c.product.id))
        candidates = scored[:self.max_candidates]

        best = candidates[0] if candidates else None
        if best is None or best.score < fuzzy_floor:
            logger.debug(
                "row_not_matched",
                row_index=row.row_index,
                best_score=best.score if best else None,
                floor=fuzzy_floor
            )
            return MatchResult(gtin=gtin_result, candidates=candidates)

        logger.debug(
            "row_matched",
            row_index=row.row_index,
            method=best.method.value,
            product_id=best.product_id,
            score=best.score
        )
        return MatchResult(gtin=gtin_result, candidate=best, candidates=candidates)
