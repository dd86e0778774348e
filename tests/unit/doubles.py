"""
Test doubles for the record store and the market data client.
"""

from typing import Any, Dict, Iterable, List, Optional

from core.exceptions import StoreUnavailable, UpstreamUnavailable
from core.market_data_interface import MarketDataClient
from core.record_store_interface import RecordStore
from core.schemas import CoinListing, StoreRecord


# ============================================
# Test Doubles
# ============================================

class FakeRecordStore(RecordStore):
    """
    In-memory RecordStore recording every call.

    Set `fail = True` to make every method raise StoreUnavailable, or
    `fail_on = {"batch_create"}` to fail selected methods only.
    """

    name = "fake"

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self.records: List[StoreRecord] = []
        self.calls: List[tuple] = []
        self.fail = False
        self.fail_on: set = set()
        self._next_key = 1
        for fields in rows or []:
            self._add(fields)

    def _add(self, fields: Dict[str, Any]) -> StoreRecord:
        record = StoreRecord(record_key=f"rec{self._next_key}", fields=dict(fields))
        self._next_key += 1
        self.records.append(record)
        return record

    def _check(self, method: str) -> None:
        if self.fail or method in self.fail_on:
            raise StoreUnavailable(f"{method} unavailable")

    @staticmethod
    def _project(record: StoreRecord, fields: Optional[List[str]]) -> StoreRecord:
        if fields is None:
            return StoreRecord(record_key=record.record_key, fields=dict(record.fields))
        return StoreRecord(
            record_key=record.record_key,
            fields={k: v for k, v in record.fields.items() if k in fields},
        )

    def calls_to(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]

    async def list_all(self, fields=None, max_records=None):
        self.calls.append(("list_all", fields, max_records))
        self._check("list_all")
        rows = self.records if max_records is None else self.records[:max_records]
        return [self._project(r, fields) for r in rows]

    async def query_by_field(self, field_name, value, fields=None, max_records=None):
        self.calls.append(("query_by_field", field_name, value, fields, max_records))
        self._check("query_by_field")
        rows = [r for r in self.records if r.fields.get(field_name) == value]
        if max_records is not None:
            rows = rows[:max_records]
        return [self._project(r, fields) for r in rows]

    async def batch_update(self, updates):
        self.calls.append(("batch_update", updates))
        self._check("batch_update")
        by_key = {r.record_key: r for r in self.records}
        updated = []
        for item in updates:
            record = by_key[item["id"]]
            record.fields.update(item["fields"])
            updated.append(record)
        return updated

    async def batch_create(self, records):
        self.calls.append(("batch_create", records))
        self._check("batch_create")
        return [self._add(item["fields"]) for item in records]


class FakeMarketClient(MarketDataClient):
    """MarketDataClient returning canned data."""

    name = "fake"

    def __init__(self, prices: Optional[Dict[str, float]] = None, listings: Optional[List[CoinListing]] = None):
        self.prices = prices or {}
        self.listings = listings or []
        self.fail = False
        self.price_calls: List[set] = []
        self.listing_calls: List[tuple] = []

    async def fetch_spot_prices(self, ids: Iterable[str]) -> Dict[str, float]:
        self.price_calls.append(set(ids))
        if self.fail:
            raise UpstreamUnavailable("upstream down")
        return dict(self.prices)

    async def fetch_top_listings(self, count: int, page: int = 1) -> List[CoinListing]:
        self.listing_calls.append((count, page))
        if self.fail:
            raise UpstreamUnavailable("upstream down")
        return list(self.listings)


def make_listings(count: int) -> List[CoinListing]:
    """Ranked listing of `count` coins, highest market cap first."""
    return [
        CoinListing(
            id=f"coin-{i}",
            name=f"Coin {i}",
            symbol=f"c{i}",
            market_cap=float(1_000_000 * (count - i)),
        )
        for i in range(count)
    ]


