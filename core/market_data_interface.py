"""
Market Data Interface - Abstract Contract for Price Providers

The sync engine only needs two read-only operations from the market data
provider: a batched spot-price lookup and a ranked listing of the top coins
by market capitalization. All prices are in USD.

Example:
    async with CoinGeckoAPIClient() as client:
        prices = await client.fetch_spot_prices({"bitcoin", "ethereum"})
        top = await client.fetch_top_listings(count=20, page=1)
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List
from core.schemas import CoinListing


class MarketDataClient(ABC):
    """
    Abstract Base Class for market data providers.

    Both operations raise core.exceptions.UpstreamUnavailable on network,
    timeout or HTTP failure. Callers are expected to abandon their cycle
    rather than retry.
    """

    name: str = "market"

    @abstractmethod
    async def fetch_spot_prices(self, ids: Iterable[str]) -> Dict[str, float]:
        """
        Fetch the current USD price for each id in a single call.

        Args:
            ids: Coin identifiers

        Returns:
            Mapping coin id -> USD price. Ids unknown upstream are absent.
        """

    @abstractmethod
    async def fetch_top_listings(self, count: int, page: int = 1) -> List[CoinListing]:
        """
        Fetch one page of coins ranked by market cap, descending.

        Args:
            count: Page size
            page: 1-based page number

        Returns:
            CoinListing objects in rank order
        """

    async def initialize(self) -> None:
        """Open connections. Default: no-op."""

    async def shutdown(self) -> None:
        """Release connections. Default: no-op."""
