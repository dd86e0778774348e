"""In-memory price cache shared by the sync jobs and the read API."""

from typing import Dict, Optional


class PriceCache:
    """Latest known USD price per coin id.

    Writers: the price refresh job (every tick) and the price lookup route
    (on a cache miss served from the store).
    Readers: the price lookup route and the health endpoint.

    Entries never expire; a newer price simply overwrites the old one. Everything
    runs on one asyncio event loop and no method awaits, so no lock is needed.
    """

    def __init__(self) -> None:
        self._prices: Dict[str, float] = {}

    def get(self, coin_id: str) -> Optional[float]:
        """Return the cached price, or None if the coin was never seen."""
        return self._prices.get(coin_id)

    def set(self, coin_id: str, price: float) -> None:
        """Record the most recently observed price for a coin."""
        self._prices[coin_id] = float(price)

    def snapshot(self) -> Dict[str, float]:
        """Shallow copy of every cached price."""
        return dict(self._prices)

    def __len__(self) -> int:
        return len(self._prices)

    def __contains__(self, coin_id: str) -> bool:
        return coin_id in self._prices
