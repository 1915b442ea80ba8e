import logging
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Supabase Configuration (authoritative team registry)
    supabase_url: Optional[str] = Field(
        None, description="URL for the Supabase project holding the team registry."
    )
    supabase_key: Optional[str] = Field(
        None, description="Anon or service key for the Supabase project."
    )
    grid_teams_table: str = Field(
        "grid_teams", description="Table holding the canonical GRID team registry."
    )
    trigram_function: str = Field(
        "search_teams_by_trigram",
        description="Postgres function performing the pg_trgm similarity search.",
    )

    # GRID Central Data (live upstream)
    grid_api_key: Optional[str] = Field(None, description="API key for GRID.")
    grid_central_data_url: str = Field(
        "https://api-op.grid.gg/central-data/graphql",
        description="GraphQL endpoint of the GRID Central Data feed.",
    )
    grid_timeout_seconds: float = Field(30.0, gt=0)
    live_page_size: int = Field(
        50, ge=1, le=50, description="GRID teams page size (API maximum is 50)."
    )
    live_max_pages: int = Field(
        2,
        ge=1,
        description="Pages scanned by a live name search before giving up.",
    )

    # Resolution Settings
    default_game: str = Field("cs2", description="Game used when none is given.")
    resolution_cache_ttl_seconds: int = Field(
        24 * 60 * 60,
        gt=0,
        description="Fixed lifetime of a cached resolution (positive or negative).",
    )
    resolution_cache_max_size: int = Field(5000, gt=0)
    store_search_limit: int = Field(5, ge=1)
    index_search_limit: int = Field(3, ge=1)
    normalization_noise_tokens: List[str] = Field(
        default_factory=lambda: ["team", "gaming", "esports", "esport", "clan", "org"],
        description="Generic tokens dropped from team names before comparison.",
    )

    # Registry Sync Settings
    sync_page_delay_seconds: float = Field(
        3.5, ge=0, description="GRID allows roughly 20 requests per minute."
    )
    sync_max_pages: int = Field(200, ge=1)
    sync_cooldown_hours: float = Field(6, ge=0)

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")


settings: AppSettings = load_settings()
