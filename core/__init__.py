"""
Core Package

Contains the service-agnostic core logic including:
- RecordStore: Abstract contract for the table store holding coin records
- MarketDataClient: Abstract contract for the market data provider
- Schemas: Pydantic models shared by adapters, sync jobs and the API
- Configuration, logging and the exception taxonomy
"""
