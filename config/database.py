"""
Supabase client for the catalog tables.

Tables used by the import pipeline:
    products        canonical catalog (read, attribute backfill only)
    supplier_items  one row per (supplier_id, product_id)
    import_jobs     one row per uploaded file
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)

CATALOG_TABLES = ("products", "supplier_items", "import_jobs")


class DatabaseConnectionError(Exception):
    """Supabase could not be reached at startup."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Shared Supabase client.

    Created on first use and reused by every service; the connection is
    probed against the products table before it is handed out.

    Raises:
        DatabaseConnectionError: If the project cannot be reached
    """
    logger.info("connecting_to_supabase", url=settings.supabase_url[:30] + "...")

    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
        client.table("products").select("id").limit(1).execute()
    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise DatabaseConnectionError(f"Failed to connect to Supabase: {e}") from e

    logger.info("supabase_connected")
    return client


def check_connection() -> dict:
    """
    Health probe.

    Returns:
        dict with status and a row count per catalog table, e.g.
        {"status": "healthy", "products_count": 120, ...}
    """
    try:
        client = get_supabase_client()
        status = {"status": "healthy"}
        for table in CATALOG_TABLES:
            result = client.table(table).select("id", count="exact").limit(1).execute()
            status[f"{table}_count"] = result.count
        return status

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }
