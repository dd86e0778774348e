"""
Time Utilities

Helpers for timestamping sync job cycles. All datetimes handed around the
application are timezone-aware and in UTC.
"""

import time
from datetime import datetime, timezone


def current_utc_datetime() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        datetime: Current time as timezone-aware datetime in UTC

    Example:
        >>> current_utc_datetime()
        datetime.datetime(2024, 1, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)
    """
    return datetime.now(timezone.utc)


def elapsed_since(start: float) -> float:
    """
    Seconds elapsed since a `time.monotonic()` reading, rounded to milliseconds.

    Example:
        >>> start = time.monotonic()
        >>> elapsed_since(start)
        0.0
    """
    return round(time.monotonic() - start, 3)
