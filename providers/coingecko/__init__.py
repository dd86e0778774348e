"""CoinGecko market data provider."""

from providers.coingecko.api_client import CoinGeckoAPIClient

__all__ = ["CoinGeckoAPIClient"]
