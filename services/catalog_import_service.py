"""
Supplier catalog import orchestrator.

Drives one uploaded file through the pipeline:

    parse -> validate GTIN -> match -> score      (worker pool, pure)
          -> upsert supplier item -> enrich       (single writer, file order)
          -> job counters and result payload

Job lifecycle: PENDING -> PROCESSING -> COMPLETED | FAILED.
Only structural problems (unreadable file, missing columns, no rows) fail
the job; a bad row is recorded and processing continues.
"""

import hashlib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import structlog

from config.settings import Settings
from exceptions import CatalogParseError, EmptyCatalogError
from integrations.gs1_lookup import Gs1LookupClient
from models.import_job import ImportItemResult, ImportResult, RowOutcome
from models.supplier_item import SupplierItemUpsert
from parsers.catalog_parser import CatalogRow, NormalizedRow, parse_catalog, normalize_row
from services.collaborators import SupplierItemStore, ImportJobStore
from services.enrichment_service import EnrichmentService
from services.import_job_service import ImportJobService
from services.import_report import (
    build_item_result,
    build_import_result,
    count_outcomes,
    summarize_issues,
)
from services.match_scoring_service import MatchOutcome, MatchScorer
from services.product_catalog_service import ProductCatalogService
from services.product_matcher_service import MatchResult, ProductMatcher
from services.supplier_item_service import SupplierItemService
from utils.gtin_utils import GtinValidationResult, validate_gtin

logger = structlog.get_logger(__name__)


@dataclass
class ImportOptions:
    """Per-call overrides. None means use the service default."""
    enrich: Optional[bool] = None
    fuzzy_floor: Optional[float] = None
    review_threshold: Optional[float] = None


@dataclass
class RowEvaluation:
    """Everything computed for a row before anything is written."""
    row: CatalogRow
    normalized: Optional[NormalizedRow] = None
    gtin: Optional[GtinValidationResult] = None
    match: Optional[MatchResult] = None
    outcome: Optional[MatchOutcome] = None
    errors: list[str] = field(default_factory=list)

    @property
    def all_errors(self) -> list[str]:
        errors = list(self.errors)
        if self.normalized:
            errors.extend(self.normalized.errors)
        if self.outcome:
            errors.extend(self.outcome.errors)
        return errors

    @property
    def all_warnings(self) -> list[str]:
        warnings = []
        if self.normalized:
            warnings.extend(self.normalized.warnings)
        if self.outcome:
            warnings.extend(self.outcome.warnings)
        return warnings

    @property
    def persistable(self) -> bool:
        return (
            not self.all_errors
            and self.outcome is not None
            and self.outcome.matched
            and self.normalized is not None
            and self.normalized.unit_price is not None
        )


class CatalogImportService:
    """
    Import orchestrator.

    Owns the import job and every supplier item write for it. Does not
    enforce single-flight across jobs; callers must not run two imports
    for the same supplier at once.
    """

    def __init__(
        self,
        supplier_items: SupplierItemStore,
        jobs: ImportJobStore,
        matcher: ProductMatcher,
        scorer: MatchScorer,
        enrichment: Optional[EnrichmentService] = None,
        max_workers: int = 4,
        auto_enrich: bool = True,
        default_currency: str = "EUR"
    ):
        self.supplier_items = supplier_items
        self.jobs = jobs
        self.matcher = matcher
        self.scorer = scorer
        self.enrichment = enrichment
        self.max_workers = max_workers
        self.auto_enrich = auto_enrich
        self.default_currency = default_currency

    # ===================
    # JOB
    # ===================

    def run_import(
        self,
        supplier_id: str,
        filename: str,
        content: bytes,
        options: Optional[ImportOptions] = None
    ) -> ImportResult:
        """
        Import one catalog file for a supplier.

        Returns:
            ImportResult. A job-fatal problem returns a FAILED result with
            error_message set rather than raising.

        Raises:
            DatabaseError: If the job record itself cannot be written
        """
        options = options or ImportOptions()
        started_at = datetime.now(timezone.utc)
        file_hash = hashlib.sha256(content).hexdigest()

        job = self.jobs.create(supplier_id, filename, file_hash)
        log = logger.bind(job_id=job.id, supplier_id=supplier_id)
        log.info("import_started", filename=filename, size_bytes=len(content))

        previous = self.jobs.find_by_hash(supplier_id, file_hash)
        if previous is not None and previous.id != job.id:
            log.info("catalog_previously_imported", previous_job_id=previous.id)

        try:
            self.jobs.mark_processing(job.id)
            rows = list(parse_catalog(content, filename))
            if not rows:
                raise EmptyCatalogError(filename, message="Catalog file contains no data rows")
        except CatalogParseError as e:
            log.error("import_failed", code=e.code, error=e.message)
            failed = self.jobs.mark_failed(job.id, e.message)
            return build_import_result(failed, started_at)
        except Exception as e:
            log.error("import_crashed", stage="parse", error=str(e))
            self._fail_job(job.id, f"Unexpected error: {str(e)}")
            raise

        try:
            items = self._process_rows(supplier_id, rows, options)
            counts = count_outcomes(items)
            completed = self.jobs.mark_completed(job.id, counts)
        except Exception as e:
            log.error("import_crashed", stage="rows", error=str(e))
            self._fail_job(job.id, f"Unexpected error: {str(e)}")
            raise

        log.info(
            "import_completed",
            total_rows=counts.total_rows,
            success=counts.success_count,
            review=counts.review_count,
            failed=counts.failed_count,
            enriched=counts.enriched_count,
            issues=summarize_issues(items)
        )

        return build_import_result(completed, started_at, items)

    def _fail_job(self, job_id: str, message: str) -> None:
        """Best effort; the original error is what the caller sees."""
        try:
            self.jobs.mark_failed(job_id, message)
        except Exception as e:
            logger.error("mark_job_failed_failed", job_id=job_id, error=str(e))

    def _process_rows(
        self,
        supplier_id: str,
        rows: list[CatalogRow],
        options: ImportOptions
    ) -> list[ImportItemResult]:
        """
        Evaluate rows in parallel, then write them one at a time in file order.

        All writes for the job go through this loop, so a product appearing
        twice in the file is updated, never inserted twice.
        """
        scorer = self.scorer
        if options.review_threshold is not None:
            scorer = MatchScorer(options.review_threshold)

        enrich = self.auto_enrich if options.enrich is None else options.enrich
        attempted_enrichment: set[str] = set()

        def evaluate(row: CatalogRow) -> RowEvaluation:
            return self.evaluate_row(row, scorer, options.fuzzy_floor)

        items = []
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="catalog-match") as pool:
            for evaluation in pool.map(evaluate, rows):
                items.append(
                    self._persist_row(supplier_id, evaluation, enrich, attempted_enrichment)
                )
        return items

    # ===================
    # ROW
    # ===================

    def evaluate_row(
        self,
        row: CatalogRow,
        scorer: Optional[MatchScorer] = None,
        fuzzy_floor: Optional[float] = None
    ) -> RowEvaluation:
        """
        Validate, match and score one row. No writes.

        Matching runs even when the row has price errors so the result still
        shows what the row would have linked to.
        """
        evaluation = RowEvaluation(row=row)
        try:
            evaluation.normalized = normalize_row(row, self.default_currency)
            evaluation.gtin = validate_gtin(row.gtin)
            evaluation.match = self.matcher.match(row, evaluation.gtin, floor=fuzzy_floor)
            evaluation.outcome = (scorer or self.scorer).score(evaluation.match, row)
        except Exception as e:
            logger.warning("row_evaluation_failed", row_index=row.row_index, error=str(e))
            evaluation.errors.append(f"Processing error: {str(e)}")
        return evaluation

    def _persist_row(
        self,
        supplier_id: str,
        evaluation: RowEvaluation,
        enrich: bool,
        attempted_enrichment: set[str]
    ) -> ImportItemResult:
        row = evaluation.row
        outcome = evaluation.outcome

        if not evaluation.persistable:
            logger.debug("row_failed", row_index=row.row_index, errors=evaluation.all_errors)
            return build_item_result(
                row.row_index,
                RowOutcome.FAILED,
                match=outcome,
                errors=evaluation.all_errors,
                warnings=evaluation.all_warnings,
            )

        normalized = evaluation.normalized
        warnings = evaluation.all_warnings

        try:
            item, created = self.supplier_items.upsert(
                SupplierItemUpsert(
                    supplier_id=supplier_id,
                    product_id=outcome.product_id,
                    supplier_sku=normalized.supplier_sku,
                    unit_price=normalized.unit_price,
                    currency=normalized.currency,
                    min_order_qty=normalized.min_order_qty,
                    stock_level=normalized.stock_level,
                    lead_time_days=normalized.lead_time_days,
                    match_method=outcome.method,
                    match_confidence=outcome.confidence,
                    needs_review=outcome.needs_review,
                )
            )
        except Exception as e:
            logger.warning("row_persist_failed", row_index=row.row_index, error=str(e))
            return build_item_result(
                row.row_index,
                RowOutcome.FAILED,
                match=outcome,
                errors=[f"Processing error: {str(e)}"],
                warnings=warnings,
            )

        enriched = False
        product = evaluation.match.candidate.product
        if enrich and self.enrichment is not None and product.id not in attempted_enrichment:
            attempted_enrichment.add(product.id)
            result = self.enrichment.enrich(product, evaluation.gtin.normalized_gtin)
            enriched = result.enriched
            if result.warning:
                warnings.append(result.warning)

        row_outcome = RowOutcome.REVIEW if outcome.needs_review else RowOutcome.SUCCESS
        logger.debug(
            "row_imported",
            row_index=row.row_index,
            outcome=row_outcome.value,
            supplier_item_id=item.id,
            created=created
        )

        return build_item_result(
            row.row_index,
            row_outcome,
            match=outcome,
            warnings=warnings,
            supplier_item_id=item.id,
            enriched=enriched,
        )


def create_catalog_import_service(settings: Settings) -> CatalogImportService:
    """
    Wire the orchestrator with the Supabase-backed collaborators.

    Called once at startup; the result is shared by all requests.
    """
    catalog = ProductCatalogService(cache_ttl_seconds=settings.catalog_cache_ttl_seconds)

    registry = None
    if settings.gs1_configured:
        registry = Gs1LookupClient(
            base_url=settings.gs1_lookup_url,
            api_key=settings.gs1_api_key,
            timeout=settings.gs1_lookup_timeout_seconds,
        )
    else:
        logger.info("gs1_not_configured_enrichment_disabled")

    return CatalogImportService(
        supplier_items=SupplierItemService(),
        jobs=ImportJobService(),
        matcher=ProductMatcher(catalog, fuzzy_floor=settings.fuzzy_match_floor),
        scorer=MatchScorer(review_threshold=settings.review_confidence_threshold),
        enrichment=EnrichmentService(catalog, registry),
        max_workers=settings.import_max_workers,
        auto_enrich=settings.auto_enrich,
        default_currency=settings.default_currency,
    )
