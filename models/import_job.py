"""
Import job schemas and the import result payload.

ImportJobResponse mirrors the import_jobs table (snake_case).
ImportResult / ImportItemResult are the payload returned to the dashboard
(camelCase on the wire).
"""

from pydantic import Field
from typing import Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema, CamelSchema
from models.matching import MatchMethod, IssueTag


class ImportJobStatus(str, Enum):
    """Lifecycle of one catalog upload."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# Allowed transitions. COMPLETED and FAILED are terminal.
VALID_STATUS_TRANSITIONS: dict[ImportJobStatus, set[ImportJobStatus]] = {
    ImportJobStatus.PENDING: {ImportJobStatus.PROCESSING, ImportJobStatus.FAILED},
    ImportJobStatus.PROCESSING: {ImportJobStatus.COMPLETED, ImportJobStatus.FAILED},
    ImportJobStatus.COMPLETED: set(),
    ImportJobStatus.FAILED: set(),
}


def is_valid_status_transition(current: ImportJobStatus, new: ImportJobStatus) -> bool:
    """Check whether a job may move from current to new."""
    return new in VALID_STATUS_TRANSITIONS.get(current, set())


class RowOutcome(str, Enum):
    """Per-row result inside a PROCESSING job."""
    SUCCESS = "SUCCESS"   # Persisted
    REVIEW = "REVIEW"     # Persisted, flagged for a human
    FAILED = "FAILED"     # Not persisted, errors recorded


class ImportJobCounts(BaseSchema):
    """Outcome counters written when a job completes."""
    total_rows: int = Field(0, ge=0)
    success_count: int = Field(0, ge=0)
    failed_count: int = Field(0, ge=0)
    review_count: int = Field(0, ge=0)
    enriched_count: int = Field(0, ge=0)


class ImportJobResponse(BaseSchema):
    """Persisted import job."""

    id: str = Field(..., description="Import job UUID")
    supplier_id: str
    filename: str
    file_hash: Optional[str] = None
    status: ImportJobStatus = ImportJobStatus.PENDING
    total_rows: int = 0
    success_count: int = 0
    failed_count: int = 0
    review_count: int = 0
    enriched_count: int = 0
    error_message: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ImportJobStatus.COMPLETED, ImportJobStatus.FAILED)


class ImportJobListResponse(BaseSchema):
    """Recent import jobs for the history screen."""
    data: list[ImportJobResponse]
    total: int


class ImportItemResult(CamelSchema):
    """One line of the audit trail. Every input row produces exactly one."""

    row_index: int = Field(..., ge=0)
    success: bool
    outcome: RowOutcome
    product_id: Optional[str] = None
    supplier_item_id: Optional[str] = None
    match_method: MatchMethod = MatchMethod.NONE
    match_confidence: float = Field(0.0, ge=0, le=1)
    needs_review: bool = False
    enriched: bool = False
    issues: list[IssueTag] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ImportResult(CamelSchema):
    """Job result payload."""

    import_id: str
    supplier_id: str
    success: bool
    status: ImportJobStatus
    error_message: Optional[str] = None
    total_rows: int = 0
    success_count: int = 0
    failed_count: int = 0
    review_count: int = 0
    enriched_count: int = 0
    started_at: datetime
    completed_at: Optional[datetime] = None
    items: list[ImportItemResult] = Field(default_factory=list)
