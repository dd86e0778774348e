"""
Market Data Providers Package

Each provider lives in its own subfolder with an api_client.py implementing
core.market_data_interface.MarketDataClient. CoinGecko is the only provider.
"""
