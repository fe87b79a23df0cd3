"""
File parsers module.
"""

from parsers.catalog_parser import (
    parse_catalog,
    normalize_row,
    CatalogFile,
    CatalogRow,
    NormalizedRow,
)

__all__ = [
    "parse_catalog",
    "normalize_row",
    "CatalogFile",
    "CatalogRow",
    "NormalizedRow",
]
