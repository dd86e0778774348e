"""
Custom exceptions for the coin sync service.

Adapters translate every transport-level failure into one of these so the
sync jobs and API handlers only ever catch domain errors.
"""


class CoinSyncError(Exception):
    """Base exception for all coin sync errors."""


class StoreUnavailable(CoinSyncError):
    """Raised when the record store (Airtable) cannot be reached, rejects
    the credentials, or answers with a non-success status."""


class UpstreamUnavailable(CoinSyncError):
    """Raised when the market data API (CoinGecko) fails or times out."""


class NotFound(CoinSyncError):
    """Raised when no record matches a coin lookup."""
