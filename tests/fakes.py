"""
In-memory collaborators for orchestrator tests.
"""

import threading
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from exceptions import (
    ImportJobNotFoundError,
    InvalidStatusTransitionError,
    ProductNotFoundError,
)
from integrations.gs1_lookup import Gs1LookupResult
from models.import_job import (
    ImportJobStatus,
    ImportJobCounts,
    ImportJobResponse,
    is_valid_status_transition,
)
from models.product import ProductResponse
from models.supplier_item import SupplierItemUpsert, SupplierItemResponse
from utils.gtin_utils import are_gtins_equivalent


class InMemoryProductCatalog:
    """Canonical catalog backed by a list."""

    def __init__(self, products: Optional[list[ProductResponse]] = None):
        self.products = {p.id: p for p in (products or [])}
        self.attribute_updates: list[tuple[str, dict]] = []

    def find_by_gtin(self, gtin: str) -> list[ProductResponse]:
        hits = [
            p for p in self.products.values()
            if p.active and are_gtins_equivalent(p.gtin, gtin)
        ]
        return sorted(hits, key=lambda p: (p.created_at, p.id))

    def find_name_candidates(self, name: str) -> list[ProductResponse]:
        return [p for p in self.products.values() if p.active]

    def get_by_id(self, product_id: str) -> ProductResponse:
        if product_id not in self.products:
            raise ProductNotFoundError(product_id)
        return self.products[product_id]

    def update_attributes(self, product_id: str, attributes: dict[str, str]) -> ProductResponse:
        product = self.get_by_id(product_id)
        self.attribute_updates.append((product_id, attributes))
        updated = product.model_copy(update=attributes)
        self.products[product_id] = updated
        return updated


class InMemorySupplierItemStore:
    """Supplier items keyed by (supplier_id, product_id)."""

    def __init__(self, fail_for_product: Optional[str] = None):
        self.items: dict[tuple[str, str], SupplierItemResponse] = {}
        self.upsert_calls: list[SupplierItemUpsert] = []
        self.writer_threads: set[str] = set()
        self.fail_for_product = fail_for_product

    def upsert(self, data: SupplierItemUpsert) -> tuple[SupplierItemResponse, bool]:
        self.writer_threads.add(threading.current_thread().name)
        self.upsert_calls.append(data)

        if data.product_id == self.fail_for_product:
            raise RuntimeError("write rejected")

        key = (data.supplier_id, data.product_id)
        existing = self.items.get(key)
        now = datetime.now(timezone.utc)

        item = SupplierItemResponse(
            id=existing.id if existing else str(uuid4()),
            created_at=existing.created_at if existing else now,
            updated_at=now,
            last_synced_at=now,
            **data.model_dump(),
        )
        self.items[key] = item
        return item, existing is None

    def list_for_supplier(self, supplier_id: str) -> list[SupplierItemResponse]:
        return [item for (sid, _), item in self.items.items() if sid == supplier_id]


class InMemoryImportJobStore:
    """Import jobs with the real state machine."""

    def __init__(self):
        self.jobs: dict[str, ImportJobResponse] = {}
        self.history: list[tuple[str, ImportJobStatus]] = []

    def create(self, supplier_id: str, filename: str, file_hash: Optional[str] = None) -> ImportJobResponse:
        job = ImportJobResponse(
            id=str(uuid4()),
            supplier_id=supplier_id,
            filename=filename,
            file_hash=file_hash,
            status=ImportJobStatus.PENDING,
            created_at=datetime.now(timezone.utc),
        )
        self.jobs[job.id] = job
        self.history.append((job.id, job.status))
        return job

    def get_by_id(self, job_id: str) -> ImportJobResponse:
        if job_id not in self.jobs:
            raise ImportJobNotFoundError(job_id)
        return self.jobs[job_id]

    def list_recent(self, supplier_id: Optional[str] = None, limit: int = 20) -> list[ImportJobResponse]:
        jobs = [j for j in self.jobs.values() if supplier_id is None or j.supplier_id == supplier_id]
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)[:limit]

    def find_by_hash(self, supplier_id: str, file_hash: str) -> Optional[ImportJobResponse]:
        matches = [
            j for j in self.jobs.values()
            if j.supplier_id == supplier_id
            and j.file_hash == file_hash
            and j.status == ImportJobStatus.COMPLETED
        ]
        return matches[-1] if matches else None

    def mark_processing(self, job_id: str) -> ImportJobResponse:
        return self._transition(job_id, ImportJobStatus.PROCESSING)

    def mark_completed(self, job_id: str, counts: ImportJobCounts) -> ImportJobResponse:
        return self._transition(
            job_id,
            ImportJobStatus.COMPLETED,
            completed_at=datetime.now(timezone.utc),
            **counts.model_dump(),
        )

    def mark_failed(self, job_id: str, error_message: str) -> ImportJobResponse:
        return self._transition(
            job_id,
            ImportJobStatus.FAILED,
            error_message=error_message,
            completed_at=datetime.now(timezone.utc),
        )

    def _transition(self, job_id: str, new_status: ImportJobStatus, **fields) -> ImportJobResponse:
        job = self.get_by_id(job_id)
        if not is_valid_status_transition(job.status, new_status):
            raise InvalidStatusTransitionError(job.status.value, new_status.value)
        updated = job.model_copy(update={"status": new_status, **fields})
        self.jobs[job_id] = updated
        self.history.append((job_id, new_status))
        return updated


class FakeRegistry:
    """Registry returning canned results, recording the identifiers asked for."""

    def __init__(self, results: Optional[dict[str, Gs1LookupResult]] = None, default: Optional[Gs1LookupResult] = None):
        self.results = results or {}
        self.default = default or Gs1LookupResult(found=False, error="GTIN not found in GS1 registry")
        self.calls: list[str] = []

    def lookup(self, gtin: str) -> Gs1LookupResult:
        self.calls.append(gtin)
        return self.results.get(gtin, self.default)
