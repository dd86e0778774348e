"""
CoinGecko REST API Client

This module provides an async HTTP client for the two CoinGecko endpoints the
sync engine relies on:
- /simple/price: batched spot prices
- /coins/markets: coins ranked by market cap

API Documentation:
    https://docs.coingecko.com/reference/introduction

Rate Limits:
    - Public API: roughly 5-15 calls per minute depending on load
    - Demo key (x-cg-demo-api-key header): 30 calls per minute
    - This client makes a single attempt per call; the sync timer is the retry

Usage:
    async with CoinGeckoAPIClient() as client:
        prices = await client.fetch_spot_prices({"bitcoin", "ethereum"})
        top = await client.fetch_top_listings(count=20, page=1)
"""

import aiohttp
import asyncio
import time
from typing import Any, Dict, Iterable, List, Optional
from pydantic import ValidationError
from core.config import settings
from core.exceptions import UpstreamUnavailable
from core.logging import get_logger, log_api_request, log_api_response
from core.market_data_interface import MarketDataClient
from core.schemas import CoinListing


class CoinGeckoAPIClient(MarketDataClient):
    """
    Async HTTP client for the CoinGecko v3 REST API.

    Attributes:
        base_url: CoinGecko API root
        api_key: Optional demo API key
        timeout: Total request timeout in seconds
        session: aiohttp ClientSession for HTTP requests

    Example:
        >>> async with CoinGeckoAPIClient() as client:
        ...     prices = await client.fetch_spot_prices(["bitcoin"])
        ...     print(prices["bitcoin"])

    Notes:
        - Uses context manager (or initialize/shutdown) for session management
        - Every failure surfaces as UpstreamUnavailable
        - Prices are always quoted in USD
    """

    name = "coingecko"
    VS_CURRENCY = "usd"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the CoinGecko API client.

        Args:
            base_url: API root (defaults to COINGECKO_BASE_URL)
            api_key: Demo API key (defaults to COINGECKO_API_KEY)
            timeout: Request timeout in seconds (defaults to REQUEST_TIMEOUT)
        """
        self.base_url = (base_url or settings.coingecko_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.coingecko_api_key
        self.timeout = timeout or settings.request_timeout
        self.logger = get_logger(__name__)
        self.session: Optional[aiohttp.ClientSession] = None

    # ============================================
    # Session Management
    # ============================================

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()

    async def initialize(self) -> None:
        """Create the HTTP session. Safe to call more than once."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self.logger.debug("CoinGeckoAPIClient session created")

    async def shutdown(self) -> None:
        """Close the HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
            self.logger.debug("CoinGeckoAPIClient session closed")
        self.session = None

    # ============================================
    # HTTP Request Handler
    # ============================================

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Make a GET request to the CoinGecko API.

        Args:
            path: API endpoint path (e.g., "/simple/price")
            params: Optional query parameters

        Returns:
            Decoded JSON response

        Raises:
            UpstreamUnavailable: On any non-200 status, timeout, connection
                error or undecodable body. 429 (rate limited) is reported like
                any other failure and retried by the next sync tick.
        """
        if not self.session:
            raise UpstreamUnavailable("CoinGecko client session not initialized")

        url = f"{self.base_url}{path}"

        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key

        log_api_request(self.name, "GET", path, params)
        started = time.monotonic()

        try:
            async with self.session.get(url, params=params, headers=headers) as resp:
                log_api_response(self.name, path, resp.status, time.monotonic() - started)

                if resp.status == 200:
                    return await resp.json()

                text = await resp.text()
                if resp.status == 429:
                    self.logger.warning(f"Rate limited (HTTP 429) on {path}")
                raise UpstreamUnavailable(f"HTTP {resp.status} on {path}: {text[:200]}")

        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable(f"Timeout on {path}") from e
        except aiohttp.ClientError as e:
            raise UpstreamUnavailable(f"Request failed on {path}: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailable(f"Invalid JSON from {path}: {e}") from e

    # ============================================
    # API Methods
    # ============================================

    async def fetch_spot_prices(self, ids: Iterable[str]) -> Dict[str, float]:
        """
        Fetch USD spot prices for a set of coins in one request.

        Args:
            ids: CoinGecko coin ids (e.g., {"bitcoin", "ethereum"})

        Returns:
            Mapping coin id -> USD price. Ids CoinGecko does not know, or
            answers without a numeric USD quote, are left out.

        Raises:
            UpstreamUnavailable: If the request fails

        CoinGecko Endpoint:
            GET /simple/price?ids=bitcoin,ethereum&vs_currencies=usd

        Response Format:
            {
              "bitcoin": {"usd": 50000},
              "ethereum": {"usd": 3000}
            }
        """
        id_list = sorted({i for i in ids if i})
        if not id_list:
            return {}

        params = {
            "ids": ",".join(id_list),
            "vs_currencies": self.VS_CURRENCY,
        }

        self.logger.info(f"Fetching spot prices for {len(id_list)} coins")

        data = await self._get("/simple/price", params)
        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"Unexpected /simple/price payload: {type(data).__name__}")

        prices: Dict[str, float] = {}
        for coin_id, quote in data.items():
            price = quote.get(self.VS_CURRENCY) if isinstance(quote, dict) else None
            if price is None:
                self.logger.warning(f"No USD price returned for '{coin_id}'")
                continue
            try:
                prices[coin_id] = float(price)
            except (TypeError, ValueError):
                self.logger.warning(f"Non-numeric USD price for '{coin_id}': {price!r}")

        self.logger.info(f"Fetched {len(prices)} spot prices")
        return prices

    async def fetch_top_listings(self, count: int, page: int = 1) -> List[CoinListing]:
        """
        Fetch coins ranked by market cap.

        Args:
            count: Number of coins per page (CoinGecko max is 250)
            page: 1-based page number

        Returns:
            CoinListing objects, highest market cap first

        Raises:
            UpstreamUnavailable: If the request fails or the payload is malformed

        CoinGecko Endpoint:
            GET /coins/markets?vs_currency=usd&order=market_cap_desc&per_page=20&page=1

        Response Format:
            [
              {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin",
               "current_price": 50000, "market_cap": 980000000000, ...}
            ]
        """
        params = {
            "vs_currency": self.VS_CURRENCY,
            "order": "market_cap_desc",
            "per_page": min(count, 250),
            "page": page,
        }

        self.logger.info(f"Fetching top {count} coins by market cap (page {page})")

        data = await self._get("/coins/markets", params)
        if not isinstance(data, list):
            raise UpstreamUnavailable(f"Unexpected /coins/markets payload: {type(data).__name__}")

        try:
            listings = [CoinListing.model_validate(item) for item in data]
        except ValidationError as e:
            raise UpstreamUnavailable(f"Malformed /coins/markets entry: {e}") from e

        self.logger.info(f"Fetched {len(listings)} coin listings")
        return listings
