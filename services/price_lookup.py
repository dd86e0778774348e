"""
Cache-first price lookup used by GET /coins/price/{id}.
"""

from typing import Optional

from core.exceptions import NotFound
from core.logging import get_logger
from core.record_store_interface import RecordStore
from storage.price_cache import PriceCache

logger = get_logger(__name__)


async def lookup_price(coin_id: str, cache: PriceCache, store: RecordStore) -> Optional[float]:
    """
    Return the price of a coin, preferring the cache.

    On a cache hit the store is not touched. On a miss the coin's record is
    read from the store and its `currentprice` cached. A record whose price
    has never been synced returns None and leaves the cache untouched.

    Raises:
        NotFound: No record has this coin id
        StoreUnavailable: The store could not be queried
    """
    price = cache.get(coin_id)
    if price is not None:
        return price

    records = await store.query_by_field("id", coin_id, fields=["currentprice"], max_records=1)
    if not records:
        raise NotFound(f"Coin not found: {coin_id}")

    price = records[0].get("currentprice")
    if price is None:
        logger.debug(f"Coin '{coin_id}' has no synced price yet")
        return None

    cache.set(coin_id, price)
    return cache.get(coin_id)
