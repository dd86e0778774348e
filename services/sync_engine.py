"""
Coin Sync Engine

Runs the two periodic jobs that keep the coins table and the price cache in
step with CoinGecko:

- price_refresh (every 60s by default): reads the tracked coin ids from the
  store, fetches their spot prices in one call, updates the cache and writes
  `currentprice` back to each record.
- listing_refresh (every 600s by default): fetches the top coins by market cap
  and upserts them into the store in batches of 10.

On start the listing refresh runs once, then the price refresh, so the first
price cycle already sees a populated table. After that each job runs on its own
timer with no coordination: they write disjoint fields and the store resolves
conflicts last-write-wins.

Every cycle returns a JobOutcome and publishes it on the event bus
(topic "sync_jobs"). Errors never escape a cycle; the next tick is the retry.
"""

import asyncio
import contextlib
import time
from typing import Awaitable, Callable, Dict, List, Optional

from core.config import settings
from core.exceptions import StoreUnavailable, UpstreamUnavailable
from core.logging import get_logger
from core.market_data_interface import MarketDataClient
from core.record_store_interface import RecordStore
from core.schemas import CoinListing, JobOutcome, StoreRecord
from core.utils.time import current_utc_datetime, elapsed_since
from services.event_bus import SYNC_JOBS_TOPIC, EventBus, bus
from storage.price_cache import PriceCache


PRICE_REFRESH_JOB = "price_refresh"
LISTING_REFRESH_JOB = "listing_refresh"


def index_by_coin_id(records: List[StoreRecord]) -> Dict[str, str]:
    """
    Map coin id -> store record key.

    Records without an id are ignored. If the table holds several records for
    the same coin, the first one wins.
    """
    index: Dict[str, str] = {}
    for record in records:
        coin_id = record.coin_id
        if coin_id:
            index.setdefault(coin_id, record.record_key)
    return index


class SyncEngine:
    """
    Background service scheduling the price and listing refresh jobs.

    Args:
        store: Record store holding the coins table
        market: Market data client
        cache: Price cache shared with the API
        event_bus: Bus receiving JobOutcome events
        price_interval: Seconds between price refreshes
        listing_interval: Seconds between listing refreshes
        tracked_limit: Max records read per price refresh
        listing_size: Coins fetched per listing refresh
        batch_size: Records written per listing batch
        sync_on_startup: Run listing then price refresh once in start()
    """

    def __init__(
        self,
        store: RecordStore,
        market: MarketDataClient,
        cache: PriceCache,
        event_bus: Optional[EventBus] = None,
        price_interval: Optional[float] = None,
        listing_interval: Optional[float] = None,
        tracked_limit: Optional[int] = None,
        listing_size: Optional[int] = None,
        batch_size: Optional[int] = None,
        sync_on_startup: Optional[bool] = None,
    ) -> None:
        self._store = store
        self._market = market
        self._cache = cache
        self._bus = event_bus or bus
        self._price_interval = settings.price_refresh_interval if price_interval is None else price_interval
        self._listing_interval = settings.listing_refresh_interval if listing_interval is None else listing_interval
        self._tracked_limit = settings.tracked_coins_limit if tracked_limit is None else tracked_limit
        self._listing_size = settings.listing_size if listing_size is None else listing_size
        self._batch_size = settings.listing_batch_size if batch_size is None else batch_size
        self._sync_on_startup = settings.sync_on_startup if sync_on_startup is None else sync_on_startup
        self._tasks: List[asyncio.Task] = []
        self._logger = get_logger(__name__)

    @property
    def is_running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        if self._tasks:
            return
        self._logger.info("Starting sync engine...")

        if self._sync_on_startup:
            await self._run_guarded(LISTING_REFRESH_JOB, self.run_listing_refresh)
            await self._run_guarded(PRICE_REFRESH_JOB, self.run_price_refresh)

        self._tasks = [
            asyncio.create_task(
                self._every(self._listing_interval, LISTING_REFRESH_JOB, self.run_listing_refresh),
                name=LISTING_REFRESH_JOB,
            ),
            asyncio.create_task(
                self._every(self._price_interval, PRICE_REFRESH_JOB, self.run_price_refresh),
                name=PRICE_REFRESH_JOB,
            ),
        ]
        self._logger.info(
            f"Sync engine started: prices every {self._price_interval}s, "
            f"listings every {self._listing_interval}s"
        )

    async def stop(self) -> None:
        if not self._tasks:
            return
        self._logger.info("Stopping sync engine...")
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []

    # ============================================
    # Scheduling
    # ============================================

    async def _run_guarded(self, job_name: str, job: Callable[[], Awaitable[JobOutcome]]) -> None:
        try:
            await job()
        except asyncio.CancelledError:
            raise
        except Exception:
            # Jobs map store/upstream errors to outcomes; anything reaching here is unexpected
            self._logger.exception(f"Unexpected error in {job_name}")

    async def _every(self, interval: float, job_name: str, job: Callable[[], Awaitable[JobOutcome]]) -> None:
        while True:
            await asyncio.sleep(interval)
            await self._run_guarded(job_name, job)

    async def _finish(self, outcome: JobOutcome) -> JobOutcome:
        await self._bus.publish(SYNC_JOBS_TOPIC, outcome)
        return outcome

    # ============================================
    # Price Refresh
    # ============================================

    async def run_price_refresh(self) -> JobOutcome:
        """
        One price refresh cycle.

        Steps:
            1. Read up to `tracked_limit` records (id field only) and index them
               by coin id.
            2. Fetch spot prices for those ids in a single upstream call.
            3. For each returned id: set the cache, then update `currentprice`
               on the matching record.

        Outcomes:
            skipped: the table has no coins yet (no upstream call is made)
            failed:  the store read or the upstream call failed; nothing written
            partial: some ids had no record or their update failed
            success: every returned price was written
        """
        started_at = current_utc_datetime()
        t0 = time.monotonic()

        def outcome(status: str, **kwargs) -> JobOutcome:
            return JobOutcome(
                job=PRICE_REFRESH_JOB,
                status=status,
                started_at=started_at,
                duration_seconds=elapsed_since(t0),
                **kwargs,
            )

        try:
            records = await self._store.list_all(fields=["id"], max_records=self._tracked_limit)
        except StoreUnavailable as e:
            self._logger.error(f"Price refresh: could not read tracked coins: {e}")
            return await self._finish(outcome("failed", error=str(e)))

        index = index_by_coin_id(records)
        if not index:
            self._logger.info("Price refresh: no tracked coins yet, skipping")
            return await self._finish(outcome("skipped"))

        try:
            prices = await self._market.fetch_spot_prices(set(index))
        except UpstreamUnavailable as e:
            self._logger.error(f"Error fetching and updating coin prices: {e}")
            return await self._finish(outcome("failed", error=str(e)))

        processed = 0
        failed_ids: List[str] = []
        for coin_id, price in prices.items():
            self._cache.set(coin_id, price)

            record_key = index.get(coin_id)
            if record_key is None:
                self._logger.warning(f"Price refresh: no record for '{coin_id}', cache updated only")
                failed_ids.append(coin_id)
                continue

            try:
                await self._store.batch_update([
                    {"id": record_key, "fields": {"currentprice": price}}
                ])
                processed += 1
            except StoreUnavailable as e:
                self._logger.error(f"Price refresh: failed to store price for '{coin_id}': {e}")
                failed_ids.append(coin_id)

        if not failed_ids:
            status = "success"
        elif processed:
            status = "partial"
        else:
            status = "failed"

        return await self._finish(
            outcome(status, processed=processed, failed=len(failed_ids), failed_ids=failed_ids)
        )

    # ============================================
    # Listing Refresh
    # ============================================

    async def run_listing_refresh(self) -> JobOutcome:
        """
        One listing refresh cycle.

        Fetches the top `listing_size` coins, then walks the ranking in batches
        of `batch_size`. Within a batch, coins already in the table get their
        name, symbol and market cap updated; new coins are created with exactly
        id, name, symbol and market_cap. A failing batch does not stop the next.
        """
        started_at = current_utc_datetime()
        t0 = time.monotonic()

        def outcome(status: str, **kwargs) -> JobOutcome:
            return JobOutcome(
                job=LISTING_REFRESH_JOB,
                status=status,
                started_at=started_at,
                duration_seconds=elapsed_since(t0),
                **kwargs,
            )

        try:
            listings = await self._market.fetch_top_listings(self._listing_size, page=1)
        except UpstreamUnavailable as e:
            self._logger.error(f"Error fetching the top {self._listing_size} coins: {e}")
            return await self._finish(outcome("failed", error=str(e)))

        listings = self._unique(listings)
        if not listings:
            self._logger.info("Listing refresh: upstream returned no coins, skipping")
            return await self._finish(outcome("skipped"))

        try:
            index = index_by_coin_id(await self._store.list_all(fields=["id"]))
        except StoreUnavailable as e:
            self._logger.error(f"Listing refresh: could not read existing coins: {e}")
            return await self._finish(outcome("failed", error=str(e)))

        processed = 0
        failed_ids: List[str] = []
        for start in range(0, len(listings), self._batch_size):
            batch = listings[start:start + self._batch_size]
            existing = [coin for coin in batch if coin.id in index]
            new = [coin for coin in batch if coin.id not in index]

            if existing:
                try:
                    await self._store.batch_update([
                        {"id": index[coin.id], "fields": coin.to_update_fields()} for coin in existing
                    ])
                    processed += len(existing)
                except StoreUnavailable as e:
                    self._logger.error(f"Error updating coin details in airtable: {e}")
                    failed_ids.extend(coin.id for coin in existing)

            if new:
                try:
                    created = await self._store.batch_create([{"fields": coin.to_fields()} for coin in new])
                    processed += len(new)
                    for record in created:
                        if record.coin_id:
                            index.setdefault(record.coin_id, record.record_key)
                except StoreUnavailable as e:
                    self._logger.error(f"Error creating coin details in airtable: {e}")
                    failed_ids.extend(coin.id for coin in new)

        if not failed_ids:
            status = "success"
        elif processed:
            status = "partial"
        else:
            status = "failed"

        return await self._finish(
            outcome(status, processed=processed, failed=len(failed_ids), failed_ids=failed_ids)
        )

    @staticmethod
    def _unique(listings: List[CoinListing]) -> List[CoinListing]:
        """Drop repeated ids, keeping the best-ranked occurrence."""
        seen = set()
        unique = []
        for coin in listings:
            if coin.id not in seen:
                seen.add(coin.id)
                unique.append(coin)
        return unique
