"""
Storage Package

Handles data persistence and caching.

Modules:
- airtable_store: RecordStore implementation on the Airtable REST API
- price_cache: In-memory latest-price cache (process lifetime, no expiry)
"""

from storage.airtable_store import AirtableRecordStore
from storage.price_cache import PriceCache

__all__ = ["AirtableRecordStore", "PriceCache"]
