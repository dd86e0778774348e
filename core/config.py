"""
Configuration Management Module

This module handles loading, validating, and providing access to application configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Validates sync intervals, batch sizes and server settings
- Provides type-safe access to configuration values
- Converts comma-separated strings to lists (CORS origins)
- Handles optional settings with sensible defaults

Usage:
    from core.config import settings

    # Access configuration values
    print(settings.airtable_table_url)
    print(settings.price_refresh_interval)  # Seconds between price refreshes
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


# Airtable accepts at most 10 records per create/update request
AIRTABLE_MAX_BATCH = 10


class Settings(BaseSettings):
    """
    Application Settings

    This class defines all configuration parameters for the application.
    Values are automatically loaded from environment variables or .env file.

    Attributes:
        airtable_api_key: Airtable personal access token
        base_id: Airtable base identifier (e.g., "appXXXXXXXXXXXXXX")
        airtable_table_name: Table holding the coin records
        airtable_base_url: Airtable REST API root
        coingecko_base_url: CoinGecko REST API root
        coingecko_api_key: Optional CoinGecko demo API key
        app_host: Host address for FastAPI server
        port: Port number for FastAPI server
        log_level: Logging level
        request_timeout: Timeout for outbound HTTP requests in seconds
        price_refresh_interval: Seconds between price refresh cycles
        listing_refresh_interval: Seconds between listing refresh cycles
        tracked_coins_limit: Maximum records read per price refresh cycle
        listing_size: Number of top coins fetched per listing refresh
        listing_batch_size: Records written per listing batch
        sync_enabled: Start the background sync jobs with the server
        sync_on_startup: Run both jobs once before the periodic schedule
        cors_origins: Comma-separated list of allowed CORS origins
    """

    # ============================================
    # Airtable Configuration
    # ============================================

    airtable_api_key: str = Field(
        default="",
        description="Airtable API key / personal access token"
    )

    base_id: str = Field(
        default="",
        description="Airtable base identifier"
    )

    airtable_table_name: str = Field(
        default="coins",
        description="Airtable table storing coin records"
    )

    airtable_base_url: str = Field(
        default="https://api.airtable.com/v0",
        description="Airtable REST API base URL"
    )

    # ============================================
    # CoinGecko Configuration
    # ============================================

    coingecko_base_url: str = Field(
        default="https://api.coingecko.com/api/v3",
        description="CoinGecko REST API base URL"
    )

    coingecko_api_key: str = Field(
        default="",
        description="CoinGecko demo API key (optional, raises rate limits)"
    )

    # ============================================
    # Application Configuration
    # ============================================

    app_host: str = Field(
        default="0.0.0.0",
        description="FastAPI server host address"
    )

    port: int = Field(
        default=8000,
        description="FastAPI server port (PORT)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    request_timeout: int = Field(
        default=30,
        description="Outbound HTTP request timeout in seconds"
    )

    # ============================================
    # Sync Schedule Configuration
    # ============================================

    price_refresh_interval: int = Field(
        default=60,
        description="Seconds between price refresh cycles"
    )

    listing_refresh_interval: int = Field(
        default=600,
        description="Seconds between top listing refresh cycles"
    )

    tracked_coins_limit: int = Field(
        default=10,
        description="Maximum coin records read per price refresh cycle"
    )

    listing_size: int = Field(
        default=20,
        description="Number of top coins by market cap fetched per listing refresh"
    )

    listing_batch_size: int = Field(
        default=AIRTABLE_MAX_BATCH,
        description="Records written per listing batch (Airtable max is 10)"
    )

    sync_enabled: bool = Field(
        default=True,
        description="Run the background sync jobs alongside the API"
    )

    sync_on_startup: bool = Field(
        default=True,
        description="Run listing then price refresh once before scheduling"
    )

    # ============================================
    # CORS Configuration
    # ============================================

    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # ============================================
    # Pydantic Settings Configuration
    # ============================================

    model_config = SettingsConfigDict(
        # Look for .env file in the project root
        env_file=".env",
        # Ignore extra fields in .env that aren't defined here
        extra="ignore",
        # Case-insensitive environment variable matching
        case_sensitive=False
    )

    # ============================================
    # Derived Properties
    # ============================================

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Convert comma-separated CORS origins string to a list.

        Returns:
            List of allowed origin URLs (e.g., ["*"] or ["http://localhost:3000"])
        """
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def airtable_table_url(self) -> str:
        """
        Full REST URL of the coins table.

        Example:
            >>> settings.airtable_table_url
            'https://api.airtable.com/v0/appXXXX/coins'
        """
        return f"{self.airtable_base_url.rstrip('/')}/{self.base_id}/{self.airtable_table_name}"

    @property
    def airtable_configured(self) -> bool:
        """True when both the Airtable API key and base id are set."""
        return bool(self.airtable_api_key and self.base_id)

    def get_airtable_headers(self) -> dict:
        """
        Get HTTP headers for Airtable API requests.

        Returns:
            Dictionary of headers including the bearer token if configured
        """
        headers = {
            "Content-Type": "application/json",
        }

        if self.airtable_api_key:
            headers["Authorization"] = f"Bearer {self.airtable_api_key}"

        return headers


# ============================================
# Global Settings Instance
# ============================================

# Create a single instance of settings to be imported throughout the application
settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Settings = None) -> None:
    """
    Validate critical configuration settings on application startup.

    Args:
        config: Settings to validate (defaults to the global settings)

    Raises:
        ValueError: If configuration is invalid

    Missing Airtable credentials only log a warning: the API keeps serving
    cached prices and every store call fails with StoreUnavailable.
    """
    # Import logger here to avoid circular import
    # (logging.py imports config.py, so we can't import at module level)
    from core.logging import logger

    config = config or settings

    if not (1 <= config.port <= 65535):
        raise ValueError(f"Invalid port number: {config.port}. Must be between 1 and 65535")

    for name in ("price_refresh_interval", "listing_refresh_interval", "request_timeout"):
        value = getattr(config, name)
        if value <= 0:
            raise ValueError(f"{name.upper()} must be positive, got {value}")

    for name in ("tracked_coins_limit", "listing_size"):
        value = getattr(config, name)
        if value < 1:
            raise ValueError(f"{name.upper()} must be at least 1, got {value}")

    if not (1 <= config.listing_batch_size <= AIRTABLE_MAX_BATCH):
        raise ValueError(
            f"Invalid LISTING_BATCH_SIZE: {config.listing_batch_size}. "
            f"Must be between 1 and {AIRTABLE_MAX_BATCH}"
        )

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    if not config.airtable_configured:
        logger.warning("AIRTABLE_API_KEY or BASE_ID is not set - record store calls will fail")

    logger.info("Configuration validated successfully")
    logger.info(f"Airtable table: {config.airtable_table_name}")
    logger.info(f"CoinGecko API: {config.coingecko_base_url}")
    logger.info(
        f"Sync: prices every {config.price_refresh_interval}s, "
        f"listings every {config.listing_refresh_interval}s"
    )
    logger.info(f"Server: {config.app_host}:{config.port}")
    logger.info(f"Log level: {config.log_level.upper()}")
