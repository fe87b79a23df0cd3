"""
Supplier item persistence.

One row per (supplier_id, product_id). Re-importing the same pair updates
the row in place and refreshes last_synced_at.
"""

from datetime import datetime
import structlog

from config import get_supabase_client
from models.supplier_item import SupplierItemUpsert, SupplierItemResponse
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class SupplierItemService:
    """
    Supplier item business logic.

    Writes must be serialized per (supplier, product); the import
    orchestrator does this by routing all writes of a job through one loop.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "supplier_items"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_pair(self, supplier_id: str, product_id: str) -> SupplierItemResponse | None:
        """Existing link for a supplier and product, or None."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("supplier_id", supplier_id)
                .eq("product_id", product_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_supplier_item_failed",
                supplier_id=supplier_id,
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return SupplierItemResponse(**result.data[0])

    def list_for_supplier(self, supplier_id: str, active_only: bool = True) -> list[SupplierItemResponse]:
        """All links of a supplier."""
        try:
            query = self.db.table(self.table).select("*").eq("supplier_id", supplier_id)
            if active_only:
                query = query.eq("active", True)
            result = query.order("created_at").execute()
        except Exception as e:
            logger.error("list_supplier_items_failed", supplier_id=supplier_id, error=str(e))
            raise DatabaseError("select", str(e))

        return [SupplierItemResponse(**row) for row in result.data]

    def count_for_supplier(self, supplier_id: str) -> int:
        """Count links of a supplier."""
        try:
            result = (
                self.db.table(self.table)
                .select("id", count="exact")
                .eq("supplier_id", supplier_id)
                .execute()
            )
            return result.count or 0
        except Exception as e:
            logger.error("count_supplier_items_failed", error=str(e))
            raise DatabaseError("count", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def upsert(self, data: SupplierItemUpsert) -> tuple[SupplierItemResponse, bool]:
        """
        Create or update the link keyed by (supplier_id, product_id).

        Returns:
            Tuple of (item, created)
        """
        existing = self.get_by_pair(data.supplier_id, data.product_id)

        payload = {
            "supplier_sku": data.supplier_sku,
            "unit_price": float(data.unit_price),
            "currency": data.currency,
            "min_order_qty": data.min_order_qty,
            "stock_level": data.stock_level,
            "lead_time_days": data.lead_time_days,
            "match_method": data.match_method.value,
            "match_confidence": data.match_confidence,
            "needs_review": data.needs_review,
            "active": data.active,
            "last_synced_at": datetime.utcnow().isoformat() + "Z",
        }

        try:
            if existing:
                result = (
                    self.db.table(self.table)
                    .update(payload)
                    .eq("id", existing.id)
                    .execute()
                )
                created = False
            else:
                result = (
                    self.db.table(self.table)
                    .insert({
                        "supplier_id": data.supplier_id,
                        "product_id": data.product_id,
                        **payload
                    })
                    .execute()
                )
                created = True
        except Exception as e:
            logger.error(
                "upsert_supplier_item_failed",
                supplier_id=data.supplier_id,
                product_id=data.product_id,
                error=str(e)
            )
            raise DatabaseError("upsert", str(e))

        item = SupplierItemResponse(**result.data[0])

        logger.debug(
            "supplier_item_upserted",
            supplier_item_id=item.id,
            product_id=item.product_id,
            created=created
        )

        return item, created
