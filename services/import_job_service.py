"""
Import job persistence and state machine.

PENDING → PROCESSING → COMPLETED
PENDING/PROCESSING → FAILED
COMPLETED and FAILED are terminal.
"""

from datetime import datetime
from typing import Optional
import structlog

from config import get_supabase_client
from models.import_job import (
    ImportJobStatus,
    ImportJobCounts,
    ImportJobResponse,
    is_valid_status_transition,
)
from exceptions import (
    ImportJobNotFoundError,
    InvalidStatusTransitionError,
    DatabaseError,
)

logger = structlog.get_logger(__name__)

MAX_ERROR_MESSAGE_LENGTH = 2000


class ImportJobService:
    """
    Import job records.

    Only the import orchestrator mutates a job.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "import_jobs"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_id(self, job_id: str) -> ImportJobResponse:
        """
        Get a single job.

        Raises:
            ImportJobNotFoundError: If job doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", job_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_import_job_failed", job_id=job_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ImportJobNotFoundError(job_id)

        return ImportJobResponse(**result.data[0])

    def list_recent(self, supplier_id: Optional[str] = None, limit: int = 20) -> list[ImportJobResponse]:
        """Most recent jobs first."""
        try:
            query = self.db.table(self.table).select("*")
            if supplier_id:
                query = query.eq("supplier_id", supplier_id)
            result = query.order("created_at", desc=True).limit(limit).execute()
        except Exception as e:
            logger.error("list_import_jobs_failed", supplier_id=supplier_id, error=str(e))
            raise DatabaseError("select", str(e))

        return [ImportJobResponse(**row) for row in result.data]

    def find_by_hash(self, supplier_id: str, file_hash: str) -> Optional[ImportJobResponse]:
        """Latest completed job for the same supplier and file content."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("supplier_id", supplier_id)
                .eq("file_hash", file_hash)
                .eq("status", ImportJobStatus.COMPLETED.value)
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("find_import_job_by_hash_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return ImportJobResponse(**result.data[0]) if result.data else None

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, supplier_id: str, filename: str, file_hash: Optional[str] = None) -> ImportJobResponse:
        """Record a newly submitted file as a PENDING job."""
        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "supplier_id": supplier_id,
                    "filename": filename,
                    "file_hash": file_hash,
                    "status": ImportJobStatus.PENDING.value,
                })
                .execute()
            )
        except Exception as e:
            logger.error("create_import_job_failed", supplier_id=supplier_id, error=str(e))
            raise DatabaseError("insert", str(e))

        job = ImportJobResponse(**result.data[0])
        logger.info("import_job_created", job_id=job.id, supplier_id=supplier_id, filename=filename)
        return job

    def mark_processing(self, job_id: str) -> ImportJobResponse:
        return self._transition(job_id, ImportJobStatus.PROCESSING)

    def mark_completed(self, job_id: str, counts: ImportJobCounts) -> ImportJobResponse:
        return self._transition(
            job_id,
            ImportJobStatus.COMPLETED,
            {
                **counts.model_dump(),
                "completed_at": datetime.utcnow().isoformat() + "Z",
            }
        )

    def mark_failed(self, job_id: str, error_message: str) -> ImportJobResponse:
        truncated = (error_message or "Unknown error")[:MAX_ERROR_MESSAGE_LENGTH]
        return self._transition(
            job_id,
            ImportJobStatus.FAILED,
            {
                "error_message": truncated,
                "completed_at": datetime.utcnow().isoformat() + "Z",
            }
        )

    def _transition(
        self,
        job_id: str,
        new_status: ImportJobStatus,
        extra: Optional[dict] = None
    ) -> ImportJobResponse:
        """
        Move a job to new_status.

        Raises:
            ImportJobNotFoundError: If job doesn't exist
            InvalidStatusTransitionError: If the move is not allowed
        """
        job = self.get_by_id(job_id)

        if not is_valid_status_transition(job.status, new_status):
            raise InvalidStatusTransitionError(job.status.value, new_status.value)

        try:
            result = (
                self.db.table(self.table)
                .update({"status": new_status.value, **(extra or {})})
                .eq("id", job_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "update_import_job_failed",
                job_id=job_id,
                new_status=new_status.value,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

        updated = ImportJobResponse(**result.data[0])

        logger.info(
            "import_job_status_changed",
            job_id=job_id,
            old_status=job.status.value,
            new_status=new_status.value
        )

        return updated
