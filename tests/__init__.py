"""
Test suite for the supplier catalog import service.

Run all tests: pytest
Run one file: pytest tests/unit/test_catalog_import_service.py -v
"""
