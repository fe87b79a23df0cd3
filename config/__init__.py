"""
Configuration module.

Exports:
    settings: Settings loaded at import time
    get_settings: Cached settings (FastAPI dependency)
    get_supabase_client: Shared Supabase client
    check_connection: Row counts per catalog table, for /health
"""

from config.settings import settings, get_settings, Settings
from config.database import (
    get_supabase_client,
    check_connection,
    DatabaseConnectionError,
    CATALOG_TABLES,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "get_supabase_client",
    "check_connection",
    "DatabaseConnectionError",
    "CATALOG_TABLES",
]
