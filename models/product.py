"""
Canonical product schemas.

Products are read-mostly from the import pipeline's point of view; the
only write is the attribute backfill requested by enrichment.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema, TimestampMixin


# Attributes the enrichment step may backfill when blank
ENRICHABLE_ATTRIBUTES = ("brand", "description", "net_content")


class ProductResponse(BaseSchema, TimestampMixin):
    """
    Canonical product record.

    Shared across all suppliers.
    """

    id: str = Field(..., description="Product UUID")
    gtin: Optional[str] = Field(None, description="Trade identifier, if known")
    name: str = Field(..., description="Product name")
    brand: Optional[str] = Field(None, description="Brand name")
    description: Optional[str] = Field(None, description="Long description")
    net_content: Optional[str] = Field(None, description="Net content, e.g. '500 g'")
    active: bool = Field(True, description="Whether product is active")

    @property
    def has_gtin(self) -> bool:
        return bool(self.gtin and self.gtin.strip())

    @property
    def missing_attributes(self) -> list[str]:
        """Enrichable attributes that are currently blank."""
        return [
            attr for attr in ENRICHABLE_ATTRIBUTES
            if not (getattr(self, attr) or "").strip()
        ]


class ProductAttributes(BaseSchema):
    """
    Descriptive attributes returned by the registry lookup.

    All optional; only blank product attributes are ever overwritten.
    """

    name: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    net_content: Optional[str] = None

    def non_empty(self) -> dict[str, str]:
        """Attributes that carry a value."""
        return {
            key: value
            for key, value in self.model_dump().items()
            if value
        }
