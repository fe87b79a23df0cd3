"""
Unit tests for ProductCatalogService.

Run: pytest tests/unit/test_product_catalog_service.py -v
"""

import pytest
from unittest.mock import MagicMock

from services.product_catalog_service import ProductCatalogService, gtin_lookup_variants
from exceptions import ProductNotFoundError, DatabaseError
from tests.factories import ProductFactory, GTIN_12, GTIN_13, OTHER_GTIN_13


class TestGtinLookupVariants:
    """Tests for gtin_lookup_variants()"""

    def test_includes_as_given_and_padded(self):
        variants = gtin_lookup_variants(GTIN_13)

        assert GTIN_13 in variants
        assert "0" + GTIN_13 in variants

    def test_upc_includes_ean_form(self):
        variants = gtin_lookup_variants(GTIN_12)

        assert variants[0] == GTIN_12
        assert "0" + GTIN_12 in variants
        assert "00" + GTIN_12 in variants

    def test_padded_input_includes_unpadded(self):
        variants = gtin_lookup_variants("00" + GTIN_12)

        assert GTIN_12 in variants

    def test_no_duplicates(self):
        variants = gtin_lookup_variants("10012345678902")

        assert len(variants) == len(set(variants))


class TestFindByGtin:
    """Tests for ProductCatalogService.find_by_gtin()"""

    def test_returns_equivalent_products_oldest_first(self, mock_db, mock_supabase):
        # Arrange
        newer = ProductFactory.create(gtin="0" + GTIN_13, created_at="2025-06-01T00:00:00Z")
        older = ProductFactory.create(gtin=GTIN_13, created_at="2025-01-01T00:00:00Z")
        other = ProductFactory.create(gtin=OTHER_GTIN_13)
        mock_supabase.set_table_data("products", [newer, other, older])
        service = ProductCatalogService()

        # Act
        products = service.find_by_gtin(GTIN_13)

        # Assert
        assert [p.id for p in products] == [older["id"], newer["id"]]

    def test_invalid_gtin_returns_empty_without_query(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [ProductFactory.create(gtin="6291041500214")])
        service = ProductCatalogService()

        assert service.find_by_gtin("6291041500214") == []

    def test_database_error_wrapped(self, mock_db):
        service = ProductCatalogService()
        service.db = MagicMock()
        service.db.table.side_effect = Exception("connection reset")

        with pytest.raises(DatabaseError):
            service.find_by_gtin(GTIN_13)


class TestFindNameCandidates:
    """Tests for the cached name scope."""

    def test_scope_is_cached(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("products", [ProductFactory.create(name="Widget")])
        service = ProductCatalogService(cache_ttl_seconds=300)
        first = service.find_name_candidates("Widget")

        # Act
        mock_supabase.set_table_data("products", ProductFactory.create_batch(3))
        second = service.find_name_candidates("Widget")

        # Assert
        assert len(first) == 1
        assert len(second) == 1

    def test_invalidate_cache_reloads(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [ProductFactory.create(name="Widget")])
        service = ProductCatalogService()
        service.find_name_candidates("Widget")

        mock_supabase.set_table_data("products", ProductFactory.create_batch(3))
        service.invalidate_cache()

        assert len(service.find_name_candidates("Widget")) == 3


class TestGetById:
    """Tests for ProductCatalogService.get_by_id()"""

    def test_returns_product(self, mock_db, mock_supabase, sample_product_data):
        mock_supabase.set_table_data("products", [sample_product_data])
        service = ProductCatalogService()

        product = service.get_by_id("prod-uuid-1")

        assert product.name == "Nitrile Gloves Size M"
        assert product.has_gtin is True
        assert product.missing_attributes == []

    def test_not_found_raises(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("products", [])
        service = ProductCatalogService()

        with pytest.raises(ProductNotFoundError):
            service.get_by_id("missing")


class TestUpdateAttributes:
    """Tests for ProductCatalogService.update_attributes()"""

    def test_writes_enrichable_attributes(self, mock_db, mock_supabase, sample_product_data):
        sample_product_data["description"] = None
        mock_supabase.set_table_data("products", [sample_product_data])
        service = ProductCatalogService()

        product = service.update_attributes("prod-uuid-1", {"description": "Gloves", "name": "Ignored"})

        assert product.description == "Gloves"
        assert product.name == "Nitrile Gloves Size M"

    def test_nothing_to_write_returns_current(self, mock_db, mock_supabase, sample_product_data):
        mock_supabase.set_table_data("products", [sample_product_data])
        service = ProductCatalogService()

        product = service.update_attributes("prod-uuid-1", {"brand": ""})

        assert product.brand == "MediCare"
