"""
Core Utilities Package

Modules:
    - time: UTC timestamp and duration helpers
"""

from core.utils.time import current_utc_datetime, elapsed_since

__all__ = ["current_utc_datetime", "elapsed_since"]
