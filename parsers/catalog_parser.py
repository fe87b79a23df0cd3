"""
Supplier catalog CSV parser.

Turns uploaded file bytes into CatalogRow records, then normalizes each row
into the values that will be written to a supplier item.

Expected columns (case-insensitive, aliases accepted):
    sku, gtin, name, brand, description, price, currency, min_qty, stock, lead_time

Only sku, gtin and price are required columns. A missing required column
rejects the whole file before any row is read.
"""

import csv
import math
import re
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from io import StringIO
from typing import Iterator, Optional

import pandas as pd
import structlog

from exceptions import CatalogParseError, CatalogMissingColumnsError, EmptyCatalogError

logger = structlog.get_logger(__name__)


# Canonical field -> accepted header names (after header normalization)
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "sku": ("sku", "supplier_sku", "suppliersku", "article", "article_number"),
    "gtin": ("gtin", "ean", "upc", "barcode"),
    "name": ("name", "product_name", "productname"),
    "brand": ("brand", "manufacturer"),
    "description": ("description", "details", "long_description"),
    "price": ("price", "unit_price", "unitprice"),
    "currency": ("currency",),
    "min_qty": ("min_qty", "min_order_qty", "minorderqty", "min_order", "minimum"),
    "stock": ("stock", "stock_level", "inventory"),
    "lead_time": ("lead_time", "leadtime", "lead_time_days", "delivery_days"),
}

REQUIRED_COLUMNS = ("sku", "gtin", "price")

# Blank values in these fields raise the missing-data flag
EXPECTED_FIELDS = ("sku", "gtin", "name")

CHUNK_SIZE = 500


@dataclass
class CatalogRow:
    """
    One data line of the catalog, trimmed but not yet validated.

    Numeric fields are None when blank and NaN when present but unparseable.
    """
    row_index: int
    sku: Optional[str] = None
    gtin: Optional[str] = None
    name: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    min_qty: Optional[float] = None
    stock: Optional[float] = None
    lead_time: Optional[float] = None
    raw: dict[str, str] = field(default_factory=dict)

    @property
    def missing_fields(self) -> list[str]:
        """Expected text fields left blank."""
        return [name for name in EXPECTED_FIELDS if not getattr(self, name)]


@dataclass
class NormalizedRow:
    """Row values ready for persistence, plus what was wrong with them."""
    row: CatalogRow
    supplier_sku: Optional[str]
    unit_price: Optional[Decimal]
    currency: str
    min_order_qty: int
    stock_level: Optional[int]
    lead_time_days: Optional[int]
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_persistable(self) -> bool:
        return not self.errors and self.unit_price is not None


# ===================
# HEADER HANDLING
# ===================

def _normalize_column(name: str) -> str:
    """'  Unit Price ' -> 'unit_price'"""
    cleaned = str(name).strip().strip('"').lower()
    return re.sub(r"[^a-z0-9_]", "_", cleaned)


def build_column_map(header: list[str]) -> dict[str, int]:
    """
    Map canonical field names to column positions.

    The first alias present wins; unknown columns are ignored.
    """
    positions = {}
    for index, column in enumerate(header):
        positions.setdefault(_normalize_column(column), index)

    column_map = {}
    for field_name, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in positions:
                column_map[field_name] = positions[alias]
                break
    return column_map


def _detect_delimiter(header_line: str) -> str:
    """Semicolon files are common in EU exports."""
    if ";" in header_line and "," not in header_line:
        return ";"
    return ","


# ===================
# NUMBER PARSING
# ===================

def parse_number(text: Optional[str]) -> Optional[float]:
    """
    Parse a numeric cell.

    Returns:
        None for blank input, NaN for unparseable input, else the float.
        Accepts a decimal comma ("9,99") and drops currency symbols. When
        both separators appear, the right-most one is the decimal point
        ("1,234.50" and "1.234,56").
    """
    if text is None or not text.strip():
        return None

    cleaned = re.sub(r"[^0-9,.\-]", "", text.strip())
    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    else:
        cleaned = cleaned.replace(",", ".")

    if not cleaned:
        return float("nan")

    value = pd.to_numeric(cleaned, errors="coerce")
    return float(value)


def _is_invalid(value: Optional[float]) -> bool:
    return value is not None and math.isnan(value)


# ===================
# FILE
# ===================

class CatalogFile:
    """
    Parsed view over one uploaded catalog.

    The header is checked on construction; iterating yields CatalogRow
    records lazily in file order. Each iteration starts again from the
    first data row.

    Raises (on construction):
        EmptyCatalogError: No header line
        CatalogMissingColumnsError: sku, gtin or price column absent
        CatalogParseError: Bytes are not decodable text, or quoting is malformed
    """

    def __init__(self, content: bytes, filename: Optional[str] = None):
        self.filename = filename
        self._text = self._decode(content)

        header_line = next(
            (line for line in self._text.splitlines() if line.strip()),
            None
        )
        if header_line is None:
            raise EmptyCatalogError(filename)

        self.delimiter = _detect_delimiter(header_line)
        self.header = next(csv.reader([header_line], delimiter=self.delimiter))
        self.column_map = build_column_map(self.header)

        missing = [col for col in REQUIRED_COLUMNS if col not in self.column_map]
        if missing:
            logger.warning(
                "catalog_missing_columns",
                filename=filename,
                missing=missing,
                header=self.header
            )
            raise CatalogMissingColumnsError(
                missing=missing,
                found=[_normalize_column(col) for col in self.header]
            )

        self._check_quoting()

        logger.debug(
            "catalog_header_parsed",
            filename=filename,
            delimiter=self.delimiter,
            columns=list(self.column_map.keys())
        )

    def _check_quoting(self) -> None:
        """
        Reject the file if a quoted field is malformed.

        An unterminated quote swallows every following line into one field.
        """
        reader = csv.reader(
            StringIO(self._text),
            delimiter=self.delimiter,
            quotechar='"',
            strict=True
        )
        record_start = 1
        try:
            for _ in reader:
                record_start = reader.line_num + 1
        except csv.Error as e:
            logger.warning(
                "catalog_malformed_quoting",
                filename=self.filename,
                line=record_start,
                error=str(e)
            )
            raise CatalogParseError(
                message=f"Malformed quoting in catalog near line {record_start}",
                details={"line": record_start, "original_error": str(e)}
            )

    @staticmethod
    def _decode(content: bytes) -> str:
        try:
            # utf-8-sig strips a byte-order mark if present
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CatalogParseError(
                message="Catalog file is not valid UTF-8 text",
                details={"original_error": str(e)}
            )

    def __iter__(self) -> Iterator[CatalogRow]:
        width = len(self.header)

        def _truncate(fields: list[str]) -> list[str]:
            logger.warning("catalog_line_has_extra_fields", expected=width, got=len(fields))
            return fields[:width]

        try:
            reader = pd.read_csv(
                StringIO(self._text),
                sep=self.delimiter,
                header=None,
                skiprows=self._header_offset() + 1,
                names=list(range(width)),
                dtype=str,
                na_filter=False,
                skip_blank_lines=True,
                quotechar='"',
                engine="python",
                on_bad_lines=_truncate,
                chunksize=CHUNK_SIZE,
            )
        except pd.errors.EmptyDataError:
            return

        row_index = 0
        try:
            for chunk in reader:
                for values in chunk.itertuples(index=False, name=None):
                    cells = [_cell(v) for v in values]
                    if not any(cells):
                        continue
                    yield self._build_row(row_index, cells)
                    row_index += 1
        except pd.errors.EmptyDataError:
            return
        except pd.errors.ParserError as e:
            raise CatalogParseError(
                message="Catalog file could not be tokenized",
                details={"original_error": str(e), "rows_read": row_index}
            )

    def _header_offset(self) -> int:
        """Number of blank physical lines before the header."""
        offset = 0
        for line in self._text.splitlines():
            if line.strip():
                return offset
            offset += 1
        return offset

    def _get(self, cells: list[str], field_name: str) -> Optional[str]:
        index = self.column_map.get(field_name)
        if index is None or index >= len(cells):
            return None
        return cells[index] or None

    def _build_row(self, row_index: int, cells: list[str]) -> CatalogRow:
        return CatalogRow(
            row_index=row_index,
            sku=self._get(cells, "sku"),
            gtin=self._get(cells, "gtin"),
            name=self._get(cells, "name"),
            brand=self._get(cells, "brand"),
            description=self._get(cells, "description"),
            price=parse_number(self._get(cells, "price")),
            currency=self._get(cells, "currency"),
            min_qty=parse_number(self._get(cells, "min_qty")),
            stock=parse_number(self._get(cells, "stock")),
            lead_time=parse_number(self._get(cells, "lead_time")),
            raw={
                field_name: cells[index]
                for field_name, index in self.column_map.items()
                if index < len(cells)
            },
        )

    def count_rows(self) -> int:
        """Non-empty data rows. Re-reads the file."""
        return sum(1 for _ in self)


def _cell(value) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def parse_catalog(content: bytes, filename: Optional[str] = None) -> CatalogFile:
    """Validate the header and return a lazily iterable catalog."""
    logger.info("parsing_catalog", filename=filename, size_bytes=len(content))
    return CatalogFile(content, filename=filename)


# ===================
# ROW NORMALIZATION
# ===================

def normalize_row(row: CatalogRow, default_currency: str = "EUR") -> NormalizedRow:
    """
    Validate and normalize one row's commercial fields.

    Errors (row cannot be persisted):
        - price blank, unparseable or negative
    Warnings (field dropped or defaulted):
        - min_qty, stock, lead_time unparseable or out of range
    """
    errors: list[str] = []
    warnings: list[str] = []

    unit_price = None
    if row.price is None:
        errors.append("Price is required")
    elif _is_invalid(row.price):
        errors.append(f"Invalid price: '{row.raw.get('price', '')}'")
    elif row.price < 0:
        errors.append(f"Price cannot be negative: {row.raw.get('price', row.price)}")
    else:
        unit_price = Decimal(str(row.price)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    min_order_qty = 1
    if _is_invalid(row.min_qty):
        warnings.append(f"Invalid minimum order quantity '{row.raw.get('min_qty', '')}', using 1")
    elif row.min_qty is not None and row.min_qty >= 1:
        min_order_qty = int(math.floor(row.min_qty))

    stock_level = _non_negative_int(row.stock, "stock", row, warnings)
    lead_time_days = _non_negative_int(row.lead_time, "lead_time", row, warnings)

    currency = (row.currency or default_currency).strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        warnings.append(f"Invalid currency '{row.currency}', using {default_currency}")
        currency = default_currency

    return NormalizedRow(
        row=row,
        supplier_sku=row.sku,
        unit_price=unit_price,
        currency=currency,
        min_order_qty=min_order_qty,
        stock_level=stock_level,
        lead_time_days=lead_time_days,
        errors=errors,
        warnings=warnings,
    )


def _non_negative_int(
    value: Optional[float],
    field_name: str,
    row: CatalogRow,
    warnings: list[str]
) -> Optional[int]:
    if value is None:
        return None
    if _is_invalid(value) or value < 0:
        warnings.append(f"Ignored invalid {field_name} value '{row.raw.get(field_name, '')}'")
        return None
    return int(math.floor(value))
