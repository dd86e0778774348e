"""
Unit Tests for CoinGecko API Client

These tests verify that the CoinGeckoAPIClient:
- Builds the documented query parameters
- Normalizes CoinGecko responses to our schemas
- Maps every failure to UpstreamUnavailable

Run with:
    pytest tests/unit/test_coingecko_api_client.py -v
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
import pytest_asyncio

from core.exceptions import UpstreamUnavailable
from core.schemas import CoinListing
from providers.coingecko.api_client import CoinGeckoAPIClient


# ============================================
# Fixtures
# ============================================

@pytest_asyncio.fixture
async def api_client():
    """Create a CoinGeckoAPIClient instance for testing"""
    async with CoinGeckoAPIClient(base_url="https://cg.test/api/v3", api_key="", timeout=5) as client:
        yield client


def _mock_session(status: int = 200, json_data=None, text: str = "", side_effect=None) -> MagicMock:
    """Session whose get() yields a response with the given status/body"""
    resp = MagicMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_data)
    resp.text = AsyncMock(return_value=text)

    session = MagicMock()
    session.closed = False
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value.__aenter__ = AsyncMock(return_value=resp)
        session.get.return_value.__aexit__ = AsyncMock(return_value=False)
    session.close = AsyncMock()
    return session


# ============================================
# Tests for Spot Prices
# ============================================

class TestFetchSpotPrices:
    """Tests for fetch_spot_prices method"""

    @pytest.mark.asyncio
    async def test_returns_usd_price_per_id(self, api_client, monkeypatch):
        """Verify the nested {id: {usd: price}} payload is flattened"""
        async def mock_get(path, params=None):
            return {"bitcoin": {"usd": 50000}, "ethereum": {"usd": 3000.5}}

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.fetch_spot_prices({"bitcoin", "ethereum"})

        assert result == {"bitcoin": 50000.0, "ethereum": 3000.5}

    @pytest.mark.asyncio
    async def test_builds_query_params(self, api_client, monkeypatch):
        """Verify ids are comma-joined and priced in USD"""
        called = {}

        async def mock_get(path, params=None):
            called["path"] = path
            called["params"] = params
            return {}

        monkeypatch.setattr(api_client, "_get", mock_get)

        await api_client.fetch_spot_prices(["ethereum", "bitcoin"])

        assert called["path"] == "/simple/price"
        assert called["params"] == {"ids": "bitcoin,ethereum", "vs_currencies": "usd"}

    @pytest.mark.asyncio
    async def test_skips_entries_without_usd(self, api_client, monkeypatch):
        """Verify coins answered without a USD quote are left out"""
        async def mock_get(path, params=None):
            return {"bitcoin": {"usd": 50000}, "mystery": {}}

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.fetch_spot_prices({"bitcoin", "mystery"})

        assert result == {"bitcoin": 50000.0}

    @pytest.mark.asyncio
    async def test_skips_non_numeric_quotes(self, api_client, monkeypatch):
        """Verify a malformed quote drops that coin instead of failing the batch"""
        async def mock_get(path, params=None):
            return {"bitcoin": {"usd": 50000}, "ethereum": {"usd": "n/a"}, "dogecoin": {"usd": [1]}}

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.fetch_spot_prices({"bitcoin", "ethereum", "dogecoin"})

        assert result == {"bitcoin": 50000.0}

    @pytest.mark.asyncio
    async def test_empty_ids_makes_no_request(self, api_client, monkeypatch):
        """Verify an empty id set short-circuits"""
        mock_get = AsyncMock()
        monkeypatch.setattr(api_client, "_get", mock_get)

        assert await api_client.fetch_spot_prices(set()) == {}
        mock_get.assert_not_called()


# ============================================
# Tests for Top Listings
# ============================================

class TestFetchTopListings:
    """Tests for fetch_top_listings method"""

    @pytest.mark.asyncio
    async def test_returns_listings_in_rank_order(self, api_client, monkeypatch):
        """Verify entries are normalized and keep upstream order"""
        async def mock_get(path, params=None):
            return [
                {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin",
                 "current_price": 50000, "market_cap": 980000000000},
                {"id": "ethereum", "symbol": "eth", "name": "Ethereum",
                 "current_price": 3000, "market_cap": 360000000000},
            ]

        monkeypatch.setattr(api_client, "_get", mock_get)

        result = await api_client.fetch_top_listings(20, page=1)

        assert [coin.id for coin in result] == ["bitcoin", "ethereum"]
        assert all(isinstance(coin, CoinListing) for coin in result)
        assert result[0].to_fields() == {
            "id": "bitcoin",
            "name": "Bitcoin",
            "symbol": "btc",
            "market_cap": 980000000000.0,
        }

    @pytest.mark.asyncio
    async def test_builds_query_params(self, api_client, monkeypatch):
        """Verify market cap ordering, page size and page are requested"""
        called = {}

        async def mock_get(path, params=None):
            called["path"] = path
            called["params"] = params
            return []

        monkeypatch.setattr(api_client, "_get", mock_get)

        await api_client.fetch_top_listings(20, page=1)

        assert called["path"] == "/coins/markets"
        assert called["params"] == {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": 20,
            "page": 1,
        }

    @pytest.mark.asyncio
    async def test_malformed_entry_raises_upstream_unavailable(self, api_client, monkeypatch):
        """Verify entries missing required fields fail the call"""
        async def mock_get(path, params=None):
            return [{"symbol": "btc"}]

        monkeypatch.setattr(api_client, "_get", mock_get)

        with pytest.raises(UpstreamUnavailable):
            await api_client.fetch_top_listings(20)


# ============================================
# Tests for Error Handling
# ============================================

class TestErrorHandling:
    """Tests for _get failure mapping"""

    @pytest.mark.asyncio
    async def test_success_returns_json(self):
        """Verify a 200 response body is returned"""
        client = CoinGeckoAPIClient(base_url="https://cg.test", api_key="demo")
        client.session = _mock_session(200, json_data={"bitcoin": {"usd": 1}})

        data = await client._get("/simple/price", {"ids": "bitcoin"})

        assert data == {"bitcoin": {"usd": 1}}
        _, kwargs = client.session.get.call_args
        assert kwargs["headers"]["x-cg-demo-api-key"] == "demo"

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        """Verify non-200 responses raise UpstreamUnavailable"""
        client = CoinGeckoAPIClient(base_url="https://cg.test")
        client.session = _mock_session(500, text="boom")

        with pytest.raises(UpstreamUnavailable, match="HTTP 500"):
            await client._get("/simple/price")

    @pytest.mark.asyncio
    async def test_rate_limit_raises(self):
        """Verify 429 is not retried within the call"""
        client = CoinGeckoAPIClient(base_url="https://cg.test")
        client.session = _mock_session(429, text="slow down")

        with pytest.raises(UpstreamUnavailable, match="HTTP 429"):
            await client._get("/coins/markets")
        assert client.session.get.call_count == 1

    @pytest.mark.asyncio
    async def test_connection_error_raises(self):
        """Verify aiohttp errors are wrapped"""
        client = CoinGeckoAPIClient(base_url="https://cg.test")
        client.session = _mock_session(side_effect=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(UpstreamUnavailable):
            await client._get("/simple/price")

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        """Verify timeouts are wrapped"""
        client = CoinGeckoAPIClient(base_url="https://cg.test")
        client.session = _mock_session(side_effect=asyncio.TimeoutError())

        with pytest.raises(UpstreamUnavailable, match="Timeout"):
            await client._get("/simple/price")

    @pytest.mark.asyncio
    async def test_uninitialized_session_raises(self):
        """Verify calls before initialize() fail cleanly"""
        client = CoinGeckoAPIClient(base_url="https://cg.test")

        with pytest.raises(UpstreamUnavailable):
            await client.fetch_spot_prices({"bitcoin"})
