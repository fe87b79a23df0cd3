"""
Canonical product lookups for the import pipeline.

Read-mostly: the only write is update_attributes(), used by enrichment to
backfill blank descriptive fields.
"""

import threading
from datetime import datetime, timedelta
from typing import Optional
import structlog

from config import get_supabase_client
from models.product import ProductResponse, ENRICHABLE_ATTRIBUTES
from exceptions import ProductNotFoundError, DatabaseError
from utils.gtin_utils import (
    VALID_GTIN_LENGTHS,
    clean_gtin,
    validate_gtin,
    are_gtins_equivalent,
)

logger = structlog.get_logger(__name__)


def gtin_lookup_variants(gtin: str) -> list[str]:
    """
    Stored forms under which an identifier may appear.

    Products created from different sources store the identifier either
    as given or padded to 14 digits.
    """
    cleaned = clean_gtin(gtin)
    unpadded = cleaned.lstrip("0")

    # Same number written at every identifier length it fits
    variants = [cleaned] + [
        unpadded.zfill(length)
        for length in VALID_GTIN_LENGTHS
        if len(unpadded) <= length
    ]

    return list(dict.fromkeys(variants))


class ProductCatalogService:
    """
    Canonical product catalog access.

    Handles:
    - Exact identifier lookup
    - The cached name scope used for fuzzy matching
    - Attribute backfill
    """

    def __init__(self, cache_ttl_seconds: int = 300):
        self.db = get_supabase_client()
        self.table = "products"
        self.cache_ttl_seconds = cache_ttl_seconds
        self._scope: Optional[list[ProductResponse]] = None
        self._scope_expires_at: Optional[datetime] = None
        self._lock = threading.Lock()

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_id(self, product_id: str) -> ProductResponse:
        """
        Get a single product by ID.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.debug("getting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_product_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        return ProductResponse(**result.data[0])

    def find_by_gtin(self, gtin: str) -> list[ProductResponse]:
        """
        Active products whose identifier is equivalent to gtin.

        Args:
            gtin: A validated identifier (any of the four lengths)

        Returns:
            Matching products, oldest first. More than one hit is a data
            integrity problem the caller should flag.
        """
        if not validate_gtin(gtin).valid:
            return []

        variants = gtin_lookup_variants(gtin)
        logger.debug("finding_products_by_gtin", gtin=gtin, variants=variants)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .in_("gtin", variants)
                .eq("active", True)
                .order("created_at")
                .execute()
            )
        except Exception as e:
            logger.error("find_products_by_gtin_failed", gtin=gtin, error=str(e))
            raise DatabaseError("select", str(e))

        products = [
            ProductResponse(**row)
            for row in result.data
            if are_gtins_equivalent(row.get("gtin"), gtin)
        ]
        return sorted(products, key=lambda p: (p.created_at, p.id))

    def find_name_candidates(self, name: str) -> list[ProductResponse]:
        """
        Products a row may be linked to by name.

        The scope is every active canonical product (the catalog is shared
        across suppliers). It is loaded once and reused until the TTL runs out.
        """
        with self._lock:
            now = datetime.now()
            if self._scope is None or self._scope_expires_at is None or now > self._scope_expires_at:
                self._scope = self._load_scope()
                self._scope_expires_at = now + timedelta(seconds=self.cache_ttl_seconds)
            return list(self._scope)

    def _load_scope(self) -> list[ProductResponse]:
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("active", True)
                .order("created_at")
                .execute()
            )
        except Exception as e:
            logger.error("load_product_scope_failed", error=str(e))
            raise DatabaseError("select", str(e))

        products = [ProductResponse(**row) for row in result.data]
        logger.info("product_scope_loaded", count=len(products))
        return products

    def invalidate_cache(self) -> None:
        """Drop the cached name scope."""
        with self._lock:
            self._scope = None
            self._scope_expires_at = None

    # ===================
    # WRITE OPERATIONS
    # ===================

    def update_attributes(self, product_id: str, attributes: dict[str, str]) -> ProductResponse:
        """
        Backfill descriptive attributes.

        Only enrichable attributes are written; callers are expected to pass
        values for attributes that are currently blank.

        Raises:
            ProductNotFoundError: If product doesn't exist
            DatabaseError: On write failure
        """
        update_data = {
            key: value
            for key, value in attributes.items()
            if key in ENRICHABLE_ATTRIBUTES and value
        }

        if not update_data:
            return self.get_by_id(product_id)

        logger.info(
            "updating_product_attributes",
            product_id=product_id,
            fields=list(update_data.keys())
        )

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_product_attributes_failed", product_id=product_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        self.invalidate_cache()
        return ProductResponse(**result.data[0])
