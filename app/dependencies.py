"""
FastAPI dependency providers.

Each provider returns a lazily created process-wide singleton. Routes receive
them through `Depends(...)`, so tests can swap any of them with
`app.dependency_overrides`.

Usage:
    from app.dependencies import get_price_cache

    @app.get("/foo")
    async def route(cache: PriceCache = Depends(get_price_cache)):
        ...
"""

from typing import Optional

from core.market_data_interface import MarketDataClient
from core.record_store_interface import RecordStore
from providers.coingecko import CoinGeckoAPIClient
from services.job_monitor import JobMonitor
from services.sync_engine import SyncEngine
from storage.airtable_store import AirtableRecordStore
from storage.price_cache import PriceCache


_price_cache: Optional[PriceCache] = None
_record_store: Optional[RecordStore] = None
_market_client: Optional[MarketDataClient] = None
_sync_engine: Optional[SyncEngine] = None
_job_monitor: Optional[JobMonitor] = None


def get_price_cache() -> PriceCache:
    global _price_cache
    if _price_cache is None:
        _price_cache = PriceCache()
    return _price_cache


def get_record_store() -> RecordStore:
    global _record_store
    if _record_store is None:
        _record_store = AirtableRecordStore()
    return _record_store


def get_market_client() -> MarketDataClient:
    global _market_client
    if _market_client is None:
        _market_client = CoinGeckoAPIClient()
    return _market_client


def get_sync_engine() -> SyncEngine:
    """The sync engine shares the cache and store singletons with the routes."""
    global _sync_engine
    if _sync_engine is None:
        _sync_engine = SyncEngine(
            store=get_record_store(),
            market=get_market_client(),
            cache=get_price_cache(),
        )
    return _sync_engine


def get_job_monitor() -> JobMonitor:
    global _job_monitor
    if _job_monitor is None:
        _job_monitor = JobMonitor()
    return _job_monitor
