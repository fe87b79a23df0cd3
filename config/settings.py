"""
Settings for the catalog import service.

Read from the environment (or .env) by pydantic-settings. Matching
thresholds and worker counts can be tuned per deployment without a release.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Service settings.

    Only SUPABASE_URL and SUPABASE_KEY are required. Enrichment stays off
    until GS1_LOOKUP_URL is set.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )

    # ===================
    # API SECURITY
    # ===================
    api_key: Optional[str] = Field(
        None,
        description="API key required on import endpoints (X-API-Key header)"
    )

    # ===================
    # GS1 REGISTRY
    # ===================
    gs1_lookup_url: Optional[str] = Field(
        None,
        description="Base URL of the trade identifier registry; enrichment is off when unset"
    )
    gs1_api_key: Optional[str] = Field(
        None,
        description="API key for the registry"
    )
    gs1_lookup_timeout_seconds: float = Field(
        default=5.0,
        ge=1,
        le=30,
        description="Timeout for a single registry lookup"
    )

    # ===================
    # MATCHING
    # ===================
    fuzzy_match_floor: float = Field(
        default=0.70,
        ge=0,
        le=1,
        description="Minimum name similarity accepted by the fuzzy matcher"
    )
    review_confidence_threshold: float = Field(
        default=0.90,
        ge=0,
        le=1,
        description="Matches below this confidence are flagged for review"
    )
    catalog_cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        le=3600,
        description="Lifetime of the cached fuzzy-match product scope"
    )

    # ===================
    # IMPORT
    # ===================
    import_max_workers: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Worker threads used for row validation and matching"
    )
    auto_enrich: bool = Field(
        default=True,
        description="Backfill missing product attributes from the registry"
    )
    default_currency: str = Field(
        default="EUR",
        min_length=3,
        max_length=3,
        description="Currency used when a row leaves it blank"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def gs1_configured(self) -> bool:
        """Check if the registry lookup is configured."""
        return bool(self.gs1_lookup_url)


@lru_cache()
def get_settings() -> Settings:
    """
    Settings, loaded once.

    Used as a FastAPI dependency so tests can override it.

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# Module-level instance for code that runs at import time (logging setup)
settings = get_settings()
