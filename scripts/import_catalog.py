"""
Import a supplier catalog CSV from the command line.

Runs the same pipeline as POST /api/supplier-catalog/import against the
configured Supabase project.

Usage:
    python scripts/import_catalog.py --supplier-id <uuid> data/catalog.csv

    # Skip registry enrichment, print the full result as JSON
    python scripts/import_catalog.py --supplier-id <uuid> data/catalog.csv \
        --no-enrich --json
"""

import argparse
import os
import sys

# Allow imports from the project root when running as a script
_root_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_root_dir, ".env"))

from config import get_settings
from models.import_job import ImportResult, RowOutcome
from services.catalog_import_service import ImportOptions, create_catalog_import_service


def print_summary(result: ImportResult) -> None:
    """Human readable summary with one line per problem row."""
    print("=" * 60)
    print(f"IMPORT {result.import_id}  [{result.status.value}]")
    print("=" * 60)

    if result.error_message:
        print(f"Error: {result.error_message}")
        return

    print(f"Rows:      {result.total_rows}")
    print(f"Success:   {result.success_count}")
    print(f"Review:    {result.review_count}")
    print(f"Failed:    {result.failed_count}")
    print(f"Enriched:  {result.enriched_count}")

    problems = [item for item in result.items if item.outcome != RowOutcome.SUCCESS]
    if not problems:
        return

    print("-" * 60)
    for item in problems:
        detail = "; ".join(item.errors) or ", ".join(tag.value for tag in item.issues)
        print(f"  row {item.row_index:>5}  {item.outcome.value:<7}  {detail}")


def main():
    parser = argparse.ArgumentParser(description="Import a supplier catalog CSV")
    parser.add_argument(
        "path",
        help="Path to the catalog .csv file"
    )
    parser.add_argument(
        "--supplier-id",
        required=True,
        help="Supplier UUID the catalog belongs to"
    )
    parser.add_argument(
        "--no-enrich",
        action="store_true",
        help="Do not backfill product attributes from the GS1 registry"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full result payload as JSON"
    )
    args = parser.parse_args()

    if not os.path.isfile(args.path):
        print(f"Error: file not found: {args.path}")
        sys.exit(1)

    with open(args.path, "rb") as f:
        content = f.read()

    service = create_catalog_import_service(get_settings())
    result = service.run_import(
        supplier_id=args.supplier_id,
        filename=os.path.basename(args.path),
        content=content,
        options=ImportOptions(enrich=False if args.no_enrich else None),
    )

    if args.json:
        print(result.model_dump_json(by_alias=True, indent=2))
    else:
        print_summary(result)

    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
