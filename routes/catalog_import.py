"""
Supplier catalog import API routes.

POST /api/supplier-catalog/import          Upload and import a CSV catalog
GET  /api/supplier-catalog/imports         Recent import jobs
GET  /api/supplier-catalog/imports/{id}    One import job
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, File, Form, Header, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
import structlog

from config.settings import Settings, get_settings
from models.import_job import ImportJobResponse, ImportJobListResponse, ImportResult
from services.catalog_import_service import CatalogImportService
from services.collaborators import ImportJobStore
from exceptions import (
    AppError,
    ValidationError,
    UnauthorizedError,
    ImportInProgressError,
    ServiceUnavailableError,
)

logger = structlog.get_logger(__name__)

router = APIRouter()

ALLOWED_EXTENSIONS = (".csv",)


class SupplierImportGuard:
    """
    Single-flight per supplier.

    The orchestrator does not lock across jobs, so two concurrent imports
    for one supplier are refused here instead.
    """

    def __init__(self):
        self._active: set[str] = set()
        self._lock = threading.Lock()

    @contextmanager
    def hold(self, supplier_id: str) -> Iterator[None]:
        with self._lock:
            if supplier_id in self._active:
                raise ImportInProgressError(supplier_id)
            self._active.add(supplier_id)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(supplier_id)

    def is_active(self, supplier_id: str) -> bool:
        with self._lock:
            return supplier_id in self._active


# ===================
# DEPENDENCIES
# ===================

def require_api_key(
    x_api_key: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings)
) -> None:
    """Reject the call unless X-API-Key matches. No-op when no key is configured."""
    if not settings.api_key:
        return
    if x_api_key != settings.api_key:
        logger.warning("import_unauthorized", has_key=bool(x_api_key))
        raise UnauthorizedError()


def get_import_service(request: Request) -> CatalogImportService:
    service = request.app.state.import_service
    if service is None:
        raise ServiceUnavailableError("Catalog import is unavailable: database not connected")
    return service


def get_job_store(request: Request) -> ImportJobStore:
    jobs = request.app.state.job_service
    if jobs is None:
        raise ServiceUnavailableError("Import history is unavailable: database not connected")
    return jobs


def get_import_guard(request: Request) -> SupplierImportGuard:
    return request.app.state.import_guard


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/import", response_model=ImportResult, dependencies=[Depends(require_api_key)])
async def import_catalog(
    supplier_id: str = Form(..., min_length=1, description="Supplier UUID"),
    file: UploadFile = File(..., description="Catalog CSV"),
    service: CatalogImportService = Depends(get_import_service),
    guard: SupplierImportGuard = Depends(get_import_guard),
):
    """
    Import a supplier catalog.

    Every row is reported in items, whatever its outcome. A structural
    problem with the file fails the whole job.

    Raises:
        401: Invalid or missing API key
        409: An import for this supplier is already running
        422: Not a .csv file, or the job failed (payload has errorMessage)
        503: Database was unreachable at startup
    """
    logger.info(
        "catalog_upload_received",
        supplier_id=supplier_id,
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        filename = file.filename or ""
        if not filename.lower().endswith(ALLOWED_EXTENSIONS):
            raise ValidationError(
                message="Only .csv files are accepted",
                code="INVALID_FILE_TYPE",
                details={"filename": filename}
            )

        content = await file.read()

        with guard.hold(supplier_id):
            result = await run_in_threadpool(service.run_import, supplier_id, filename, content)

        return JSONResponse(
            status_code=200 if result.success else 422,
            content=result.model_dump(mode="json", by_alias=True)
        )

    except Exception as e:
        return handle_error(e)


@router.get("/imports", response_model=ImportJobListResponse)
async def list_imports(
    supplier_id: Optional[str] = Query(None, description="Filter by supplier"),
    limit: int = Query(20, ge=1, le=100, description="Max jobs returned"),
    jobs: ImportJobStore = Depends(get_job_store),
):
    """Recent import jobs, newest first."""
    try:
        recent = await run_in_threadpool(jobs.list_recent, supplier_id, limit)
        return ImportJobListResponse(data=recent, total=len(recent))

    except Exception as e:
        return handle_error(e)


@router.get("/imports/{job_id}", response_model=ImportJobResponse)
async def get_import(
    job_id: str,
    jobs: ImportJobStore = Depends(get_job_store),
):
    """
    Get one import job.

    Raises:
        404: Import job not found
    """
    try:
        return await run_in_threadpool(jobs.get_by_id, job_id)

    except Exception as e:
        return handle_error(e)
