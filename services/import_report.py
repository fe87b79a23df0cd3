"""
Import result payload builders.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Optional

from models.import_job import (
    ImportJobStatus,
    ImportJobCounts,
    ImportJobResponse,
    ImportItemResult,
    ImportResult,
    RowOutcome,
)
from models.matching import MatchMethod
from services.match_scoring_service import MatchOutcome


def build_item_result(
    row_index: int,
    outcome: RowOutcome,
    match: Optional[MatchOutcome] = None,
    errors: Optional[list[str]] = None,
    warnings: Optional[list[str]] = None,
    supplier_item_id: Optional[str] = None,
    enriched: bool = False
) -> ImportItemResult:
    """One audit line. Failed rows keep their match details for the reviewer."""
    return ImportItemResult(
        row_index=row_index,
        success=outcome != RowOutcome.FAILED,
        outcome=outcome,
        product_id=match.product_id if match else None,
        supplier_item_id=supplier_item_id,
        match_method=match.method if match else MatchMethod.NONE,
        match_confidence=match.confidence if match else 0.0,
        needs_review=match.needs_review if match else False,
        enriched=enriched,
        issues=list(match.issues) if match else [],
        errors=list(errors or []),
        warnings=list(warnings or []),
    )


def count_outcomes(items: list[ImportItemResult]) -> ImportJobCounts:
    """Job counters. Each row lands in exactly one of success/review/failed."""
    by_outcome = Counter(item.outcome for item in items)
    return ImportJobCounts(
        total_rows=len(items),
        success_count=by_outcome[RowOutcome.SUCCESS],
        review_count=by_outcome[RowOutcome.REVIEW],
        failed_count=by_outcome[RowOutcome.FAILED],
        enriched_count=sum(1 for item in items if item.enriched),
    )


def build_import_result(
    job: ImportJobResponse,
    started_at: datetime,
    items: Optional[list[ImportItemResult]] = None
) -> ImportResult:
    """
    Job result payload.

    success is True only for a COMPLETED job; a completed job with failed
    rows is still a success at the job level.
    """
    items = items or []
    counts = count_outcomes(items)

    return ImportResult(
        import_id=job.id,
        supplier_id=job.supplier_id,
        success=job.status == ImportJobStatus.COMPLETED,
        status=job.status,
        error_message=job.error_message,
        started_at=started_at,
        completed_at=job.completed_at or datetime.now(timezone.utc),
        items=items,
        **counts.model_dump(),
    )


def summarize_issues(items: list[ImportItemResult]) -> dict[str, int]:
    """Count of rows per issue tag, for logs and the review screen."""
    counter = Counter(tag.value for item in items for tag in item.issues)
    return dict(sorted(counter.items()))
