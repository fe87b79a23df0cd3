"""
Business logic services.

Each service handles one step of the catalog import. Services are built
once at startup (see create_catalog_import_service) and passed to callers.
"""

from services.product_catalog_service import ProductCatalogService
from services.supplier_item_service import SupplierItemService
from services.import_job_service import ImportJobService
from services.enrichment_service import EnrichmentService, EnrichmentOutcome
from services.product_matcher_service import ProductMatcher, MatchCandidate, MatchResult
from services.match_scoring_service import MatchScorer, MatchOutcome
from services.catalog_import_service import (
    CatalogImportService,
    ImportOptions,
    RowEvaluation,
    create_catalog_import_service,
)

__all__ = [
    "ProductCatalogService",
    "SupplierItemService",
    "ImportJobService",
    "EnrichmentService",
    "EnrichmentOutcome",
    "ProductMatcher",
    "MatchCandidate",
    "MatchResult",
    "MatchScorer",
    "MatchOutcome",
    "CatalogImportService",
    "ImportOptions",
    "RowEvaluation",
    "create_catalog_import_service",
]
