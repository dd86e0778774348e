"""
Shared fixtures for unit tests.

Provides in-memory doubles for the record store and the market data client so
sync jobs and routes can be exercised without Airtable or CoinGecko.
"""

import pytest

from services.event_bus import EventBus
from storage.price_cache import PriceCache
from tests.unit.doubles import FakeMarketClient, FakeRecordStore


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def price_cache() -> PriceCache:
    return PriceCache()


@pytest.fixture
def fake_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def fake_market() -> FakeMarketClient:
    return FakeMarketClient()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()
