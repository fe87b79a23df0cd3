"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    CamelSchema,
    TimestampMixin,
)
from models.matching import (
    MatchMethod,
    IssueTag,
    GtinType,
)
from models.product import (
    ProductResponse,
    ProductAttributes,
)
from models.supplier_item import (
    SupplierItemUpsert,
    SupplierItemResponse,
)
from models.import_job import (
    ImportJobStatus,
    RowOutcome,
    ImportJobCounts,
    ImportJobResponse,
    ImportJobListResponse,
    ImportItemResult,
    ImportResult,
    is_valid_status_transition,
)

__all__ = [
    # Base
    "BaseSchema",
    "CamelSchema",
    "TimestampMixin",

    # Matching
    "MatchMethod",
    "IssueTag",
    "GtinType",

    # Product
    "ProductResponse",
    "ProductAttributes",

    # Supplier item
    "SupplierItemUpsert",
    "SupplierItemResponse",

    # Import job
    "ImportJobStatus",
    "RowOutcome",
    "ImportJobCounts",
    "ImportJobResponse",
    "ImportJobListResponse",
    "ImportItemResult",
    "ImportResult",
    "is_valid_status_transition",
]
