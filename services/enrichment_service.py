"""
Best-effort enrichment of matched products.

Fills blank brand/description/net content from the registry. Failures are
reported as a warning string and never propagate to the row or the job.
"""

from dataclasses import dataclass
from typing import Optional
import structlog

from models.product import ProductResponse
from services.collaborators import ProductLookup, RegistryLookup

logger = structlog.get_logger(__name__)


@dataclass
class EnrichmentOutcome:
    enriched: bool = False
    warning: Optional[str] = None
    fields: tuple[str, ...] = ()


class EnrichmentService:
    """
    Pass-through to the registry with attribute backfill.

    With no registry configured every call is a no-op.
    """

    def __init__(self, catalog: ProductLookup, registry: Optional[RegistryLookup] = None):
        self.catalog = catalog
        self.registry = registry

    @property
    def enabled(self) -> bool:
        return self.registry is not None

    def needs_enrichment(self, product: ProductResponse) -> bool:
        return bool(product.missing_attributes)

    def enrich(self, product: ProductResponse, gtin: Optional[str]) -> EnrichmentOutcome:
        """
        Backfill the product's blank attributes.

        Args:
            product: The matched canonical product
            gtin: The row's validated identifier, or None to use the product's own

        Returns:
            EnrichmentOutcome; enriched is True only if something was written
        """
        if not self.enabled or not self.needs_enrichment(product):
            return EnrichmentOutcome()

        lookup_gtin = gtin or product.gtin
        if not lookup_gtin:
            return EnrichmentOutcome()

        try:
            result = self.registry.lookup(lookup_gtin)
        except Exception as e:
            # Registry clients are expected not to raise; treat it as a failed lookup
            logger.warning("enrichment_lookup_raised", product_id=product.id, error=str(e))
            return EnrichmentOutcome(warning=f"Enrichment failed: {str(e)}")

        if not result.found or result.attributes is None:
            logger.debug("enrichment_not_found", product_id=product.id, gtin=lookup_gtin, error=result.error)
            return EnrichmentOutcome(warning=f"Enrichment skipped: {result.error or 'no data'}")

        available = result.attributes.non_empty()
        updates = {
            attr: available[attr]
            for attr in product.missing_attributes
            if attr in available
        }

        if not updates:
            return EnrichmentOutcome()

        try:
            self.catalog.update_attributes(product.id, updates)
        except Exception as e:
            logger.warning("enrichment_failed", product_id=product.id, error=str(e))
            return EnrichmentOutcome(warning=f"Enrichment failed: {str(e)}")

        logger.info("product_enriched", product_id=product.id, fields=list(updates.keys()))
        return EnrichmentOutcome(enriched=True, fields=tuple(updates.keys()))
