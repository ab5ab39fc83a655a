"""
Core configuration module for the tour seed reconciler.
Settings are read from environment variables and an optional .env file.
"""

from pathlib import Path
from pydantic_settings import BaseSettings
from typing import Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "tour_catalog.json"


class ConfigurationError(RuntimeError):
    """Raised when required connection configuration is missing."""


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Only the store connection has no usable default.
    """

    # Application
    app_name: str = "Tour Seed Reconciler"
    app_version: str = "1.0.0"
    environment: str = "production"
    debug: bool = False

    # Database (no default: credentials must be supplied)
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_recycle: int = 1800  # Recycle connections after 30 min
    database_pool_pre_ping: bool = True

    # Desired-state catalog
    catalog_path: str = str(DEFAULT_CATALOG_PATH)

    # Audit: tours with fewer items than this get a "very few locations" warning
    audit_min_items: int = 4

    # API Configuration
    api_prefix: str = "/api/v1"
    api_host: str = "0.0.0.0"
    api_port: int = 8890

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    cors_origins: list = ["http://localhost:3000", "http://127.0.0.1:3000"]
    cors_allow_methods: list = ["GET", "POST", "OPTIONS"]
    cors_allow_headers: list = ["Content-Type", "Accept", "X-API-Key"]

    # Admin API key for the reconcile endpoint (MUST be set via .env in production)
    admin_api_key: str = "CHANGE-ME-IN-DOTENV"

    class Config:
        env_file = ".env"
        case_sensitive = False


def require_database_url(config: "Settings") -> str:
    """Return the configured database URL or fail before any store call."""
    if not config.database_url:
        raise ConfigurationError(
            "DATABASE_URL is not set; cannot connect to the tour store"
        )
    return config.database_url


# Global settings instance
settings = Settings()
