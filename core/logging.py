"""
Unified Logging Configuration

This module sets up a centralized logging system for the entire application.
All modules should import and use the logger from this module instead of
using print() statements.

Usage:
    from core.logging import logger

    logger.info("Price refresh finished")
    logger.error("Airtable request failed")

Log Levels (from most to least verbose):
    DEBUG    - Detailed diagnostic information (e.g., "API Request: coingecko /simple/price")
    INFO     - General informational messages (e.g., "Sync engine started")
    WARNING  - Warnings about potential issues (e.g., "No record for coin 'foo'")
    ERROR    - Errors that don't crash the app (e.g., "Price refresh failed")
    CRITICAL - Severe errors that may crash

Configuration:
    Log level is controlled by the LOG_LEVEL setting in .env file (default INFO).
"""

import logging
import sys

from core.config import settings


ROOT_LOGGER_NAME = "coinsync"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Application started")
        2024-01-01 12:00:00 [INFO] coinsync: Application started
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

# Create the global logger instance
logger = setup_logging(log_level=settings.log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module or component.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: Logger instance nested under the application logger

    Example:
        # In storage/airtable_store.py:
        from core.logging import get_logger
        logger = get_logger(__name__)  # Creates "coinsync.storage.airtable_store"
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(service: str, method: str, endpoint: str, params: dict = None) -> None:
    """
    Log an outbound API request with consistent formatting.

    Args:
        service: Remote service name (e.g., "coingecko", "airtable")
        method: HTTP method
        endpoint: API endpoint being called
        params: Request parameters (optional)

    Example:
        >>> log_api_request("coingecko", "GET", "/simple/price", {"ids": "bitcoin"})
        [DEBUG] API Request: coingecko GET /simple/price | Params: {'ids': 'bitcoin'}
    """
    if params:
        logger.debug(f"API Request: {service} {method} {endpoint} | Params: {params}")
    else:
        logger.debug(f"API Request: {service} {method} {endpoint}")


def log_api_response(service: str, endpoint: str, status: int, response_time: float = None) -> None:
    """
    Log an API response with status and timing information.

    Args:
        service: Remote service name
        endpoint: API endpoint
        status: HTTP status code
        response_time: Response time in seconds (optional)

    Example:
        >>> log_api_response("airtable", "/coins", 200, 0.342)
        [DEBUG] API Response: airtable /coins | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {service} {endpoint} | Status: {status}{time_str}")


logger.debug("Logging system initialized")
