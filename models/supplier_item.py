"""
Supplier item schemas.

A supplier item links one supplier to one canonical product and records
the supplier's SKU, price and ordering terms. (supplier_id, product_id)
is unique.
"""

from pydantic import Field, field_validator
from typing import Optional
from decimal import Decimal
from datetime import datetime

from models.base import BaseSchema, TimestampMixin
from models.matching import MatchMethod


class SupplierItemUpsert(BaseSchema):
    """
    Create-or-update payload keyed by (supplier_id, product_id).
    """

    supplier_id: str = Field(..., min_length=1, description="Supplier UUID")
    product_id: str = Field(..., min_length=1, description="Canonical product UUID")
    supplier_sku: Optional[str] = Field(None, max_length=100, description="Supplier's own SKU")
    unit_price: Decimal = Field(..., ge=0, description="Unit price")
    currency: str = Field("EUR", min_length=3, max_length=3, description="ISO currency code")
    min_order_qty: int = Field(1, ge=1, description="Minimum order quantity")
    stock_level: Optional[int] = Field(None, ge=0, description="Reported stock")
    lead_time_days: Optional[int] = Field(None, ge=0, description="Reported lead time")
    match_method: MatchMethod = Field(..., description="How the product was resolved")
    match_confidence: float = Field(..., ge=0, le=1, description="Match confidence")
    needs_review: bool = Field(False, description="Flagged for human review")
    active: bool = Field(True, description="Whether the link is active")

    @field_validator("currency")
    @classmethod
    def currency_uppercase(cls, v: str) -> str:
        """Currency must be uppercase."""
        return v.upper()


class SupplierItemResponse(BaseSchema, TimestampMixin):
    """Persisted supplier item."""

    id: str = Field(..., description="Supplier item UUID")
    supplier_id: str
    product_id: str
    supplier_sku: Optional[str] = None
    unit_price: Optional[Decimal] = None
    currency: str = "EUR"
    min_order_qty: int = 1
    stock_level: Optional[int] = None
    lead_time_days: Optional[int] = None
    match_method: Optional[MatchMethod] = None
    match_confidence: Optional[float] = None
    needs_review: bool = False
    active: bool = True
    last_synced_at: Optional[datetime] = None
