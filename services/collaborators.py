"""
Interfaces the import pipeline depends on.

The Supabase-backed services satisfy these; tests pass in-memory fakes.
"""

from typing import Optional, Protocol

from models.product import ProductResponse
from models.supplier_item import SupplierItemUpsert, SupplierItemResponse
from models.import_job import ImportJobCounts, ImportJobResponse
from integrations.gs1_lookup import Gs1LookupResult


class ProductLookup(Protocol):
    """Read access to the canonical catalog, plus attribute backfill."""

    def find_by_gtin(self, gtin: str) -> list[ProductResponse]: ...

    def find_name_candidates(self, name: str) -> list[ProductResponse]: ...

    def get_by_id(self, product_id: str) -> ProductResponse: ...

    def update_attributes(self, product_id: str, attributes: dict[str, str]) -> ProductResponse: ...


class SupplierItemStore(Protocol):
    """Upsert of supplier items keyed by (supplier_id, product_id)."""

    def upsert(self, data: SupplierItemUpsert) -> tuple[SupplierItemResponse, bool]: ...


class ImportJobStore(Protocol):
    """Import job records and their state machine."""

    def create(self, supplier_id: str, filename: str, file_hash: Optional[str] = None) -> ImportJobResponse: ...

    def mark_processing(self, job_id: str) -> ImportJobResponse: ...

    def mark_completed(self, job_id: str, counts: ImportJobCounts) -> ImportJobResponse: ...

    def mark_failed(self, job_id: str, error_message: str) -> ImportJobResponse: ...

    def get_by_id(self, job_id: str) -> ImportJobResponse: ...

    def list_recent(self, supplier_id: Optional[str] = None, limit: int = 20) -> list[ImportJobResponse]: ...

    def find_by_hash(self, supplier_id: str, file_hash: str) -> Optional[ImportJobResponse]: ...


class RegistryLookup(Protocol):
    """External attribute lookup by trade identifier. Never raises."""

    def lookup(self, gtin: str) -> Gs1LookupResult: ...
