"""
Test Suite

Structure:
- tests/unit/: Tests for the store, market client, sync engine, job monitor
  and API routes, run against in-memory doubles and mocked transports

Uses pytest with pytest-asyncio for testing async functionality.
"""
