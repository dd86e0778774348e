"""
Record Store Interface - Abstract Contract for the Coins Table

The sync jobs and API routes work with RecordStore, never with a concrete
table-store client. This keeps Airtable specifics inside storage/ and lets
tests swap in an in-memory double.

Records are addressed two ways:
    - by the domain coin id (the `id` field), for lookups and filters
    - by the store-assigned record key, for updates

Example:
    store = AirtableRecordStore(settings)
    await store.initialize()

    records = await store.list_all(fields=["id"], max_records=10)
    await store.batch_update([
        {"id": records[0].record_key, "fields": {"currentprice": 50000.0}}
    ])
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from core.schemas import StoreRecord


class RecordStore(ABC):
    """
    Abstract Base Class for record stores.

    Every method raises core.exceptions.StoreUnavailable on transport,
    authentication or server failure. "No match" is never an error.

    Abstract Methods:
        - list_all: Read every record (optionally projected and bounded)
        - query_by_field: Read records whose field equals a value
        - batch_update: Apply partial field updates by record key
        - batch_create: Insert new records

    Optional Methods:
        - initialize: Open connections
        - shutdown: Close connections
    """

    name: str = "store"

    @abstractmethod
    async def list_all(
        self,
        fields: Optional[List[str]] = None,
        max_records: Optional[int] = None
    ) -> List[StoreRecord]:
        """
        Fetch all records of the table.

        Args:
            fields: Only return these fields (all fields if None)
            max_records: Stop after this many records (unbounded if None)

        Returns:
            List of StoreRecord in store order
        """

    @abstractmethod
    async def query_by_field(
        self,
        field_name: str,
        value: Any,
        fields: Optional[List[str]] = None,
        max_records: Optional[int] = None
    ) -> List[StoreRecord]:
        """
        Fetch records where `field_name` equals `value`.

        Returns:
            Matching records, possibly empty
        """

    @abstractmethod
    async def batch_update(self, updates: List[Dict[str, Any]]) -> List[StoreRecord]:
        """
        Apply partial updates.

        Args:
            updates: Items of the form {"id": record_key, "fields": {...}}

        Returns:
            The updated records as echoed by the store
        """

    @abstractmethod
    async def batch_create(self, records: List[Dict[str, Any]]) -> List[StoreRecord]:
        """
        Insert new records.

        Args:
            records: Items of the form {"fields": {...}}

        Returns:
            The created records, carrying their new record keys
        """

    # ============================================
    # Lifecycle Methods (optional overrides)
    # ============================================

    async def initialize(self) -> None:
        """Open connections. Default: no-op."""

    async def shutdown(self) -> None:
        """Release connections. Default: no-op."""
