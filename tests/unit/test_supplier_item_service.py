"""
Unit tests for SupplierItemService.

Run: pytest tests/unit/test_supplier_item_service.py -v
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from services.supplier_item_service import SupplierItemService
from models.matching import MatchMethod
from models.supplier_item import SupplierItemUpsert
from exceptions import DatabaseError
from tests.factories import SupplierItemFactory


def make_upsert(**overrides) -> SupplierItemUpsert:
    fields = {
        "supplier_id": "supplier-1",
        "product_id": "prod-uuid-1",
        "supplier_sku": "SKU1",
        "unit_price": Decimal("9.99"),
        "currency": "eur",
        "match_method": MatchMethod.EXACT_IDENTIFIER,
        "match_confidence": 1.0,
    }
    fields.update(overrides)
    return SupplierItemUpsert(**fields)


class TestSupplierItemUpsert:
    """Tests for SupplierItemService.upsert()"""

    def test_first_occurrence_creates(self, mock_db, mock_supabase):
        # Arrange
        mock_supabase.set_table_data("supplier_items", [])
        service = SupplierItemService()

        # Act
        item, created = service.upsert(make_upsert())

        # Assert
        assert created is True
        assert item.supplier_id == "supplier-1"
        assert item.product_id == "prod-uuid-1"
        assert item.unit_price == Decimal("9.99")
        assert item.currency == "EUR"
        assert item.last_synced_at is not None

    def test_repeat_updates_in_place(self, mock_db, mock_supabase):
        existing = SupplierItemFactory.create(id="item-1", unit_price=5.00)
        mock_supabase.set_table_data("supplier_items", [existing])
        service = SupplierItemService()

        item, created = service.upsert(make_upsert(unit_price=Decimal("7.50"), supplier_sku="SKU1-B"))

        assert created is False
        assert item.id == "item-1"
        assert item.unit_price == Decimal("7.5")
        assert item.supplier_sku == "SKU1-B"

    def test_records_match_details(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("supplier_items", [])
        service = SupplierItemService()

        item, _ = service.upsert(make_upsert(
            match_method=MatchMethod.FUZZY_NAME,
            match_confidence=0.82,
            needs_review=True,
        ))

        assert item.match_method == MatchMethod.FUZZY_NAME
        assert item.match_confidence == 0.82
        assert item.needs_review is True

    def test_database_error_wrapped(self, mock_db):
        service = SupplierItemService()
        service.db = MagicMock()
        service.db.table.side_effect = Exception("timeout")

        with pytest.raises(DatabaseError):
            service.upsert(make_upsert())


class TestSupplierItemRead:
    """Tests for list/count."""

    def test_list_for_supplier(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("supplier_items", [
            SupplierItemFactory.create(product_id="p1"),
            SupplierItemFactory.create(product_id="p2"),
        ])
        service = SupplierItemService()

        items = service.list_for_supplier("supplier-1")

        assert [i.product_id for i in items] == ["p1", "p2"]

    def test_count_for_supplier(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("supplier_items", [], count=12)
        service = SupplierItemService()

        assert service.count_for_supplier("supplier-1") == 12

    def test_get_by_pair_missing_is_none(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("supplier_items", [])
        service = SupplierItemService()

        assert service.get_by_pair("supplier-1", "p1") is None
