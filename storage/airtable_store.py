"""
Airtable Record Store

Implements core.record_store_interface.RecordStore on top of the Airtable
REST API using httpx.

Airtable API Notes:
    - List:   GET   /v0/{base}/{table}?fields[]=..&maxRecords=..&filterByFormula=..
              Paginated: the response carries an "offset" token until exhausted.
    - Update: PATCH /v0/{base}/{table} with {"records": [{"id": recKey, "fields": {...}}]}
    - Create: POST  /v0/{base}/{table} with {"records": [{"fields": {...}}]}
    - Writes accept at most 10 records per request.
    - Auth: "Authorization: Bearer <token>"

Usage:
    store = AirtableRecordStore()
    await store.initialize()
    records = await store.query_by_field("id", "bitcoin", ["currentprice"], 1)
    await store.shutdown()
"""

import time
from typing import Any, Dict, List, Optional, Tuple

import httpx

from core.config import AIRTABLE_MAX_BATCH, Settings, settings
from core.exceptions import StoreUnavailable
from core.logging import get_logger, log_api_request, log_api_response
from core.record_store_interface import RecordStore
from core.schemas import StoreRecord


def escape_formula_value(value: Any) -> str:
    """
    Render a value as an Airtable formula literal.

    Strings are single-quoted with backslashes and quotes escaped, so a coin id
    can never break out of the filter expression. Numbers are emitted as-is.

    Example:
        >>> escape_formula_value("it's")
        "'it\\\\'s'"
        >>> escape_formula_value(42)
        '42'
    """
    # bool is an int subclass; Airtable spells it TRUE()/FALSE()
    if isinstance(value, bool):
        return "TRUE()" if value else "FALSE()"
    if isinstance(value, (int, float)):
        return repr(value)
    text = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


def build_equals_formula(field_name: str, value: Any) -> str:
    """Formula matching records whose field equals the value, e.g. {id} = 'bitcoin'."""
    return f"{{{field_name}}} = {escape_formula_value(value)}"


def _chunks(items: List[Any], size: int) -> List[List[Any]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class AirtableRecordStore(RecordStore):
    """
    Record store backed by one Airtable table.

    Attributes:
        config: Settings providing credentials, table URL and timeout
        client: Pooled httpx.AsyncClient, created on first use

    Notes:
        - Every transport or HTTP failure raises StoreUnavailable
        - Writes are split into requests of at most 10 records; a failure
          aborts the remaining chunks of that call
    """

    name = "airtable"
    PAGE_SIZE = 100

    def __init__(self, config: Settings = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            config: Settings to read Airtable configuration from (global settings by default)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.config = config or settings
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None
        self.logger = get_logger(__name__)

    # ============================================
    # Lifecycle
    # ============================================

    async def initialize(self) -> None:
        if self.client is None:
            self.client = httpx.AsyncClient(
                headers=self.config.get_airtable_headers(),
                timeout=float(self.config.request_timeout),
                transport=self._transport,
            )
            self.logger.debug("Airtable client created")

    async def shutdown(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None
            self.logger.debug("Airtable client closed")

    # ============================================
    # HTTP Request Handler
    # ============================================

    async def _request(
        self,
        method: str,
        params: Optional[List[Tuple[str, Any]]] = None,
        payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Send one request to the table endpoint and decode the JSON body.

        Raises:
            StoreUnavailable: Missing credentials, transport error, timeout,
                non-2xx status or undecodable body
        """
        if not self.config.airtable_configured:
            raise StoreUnavailable("Airtable credentials are not configured")

        await self.initialize()

        url = self.config.airtable_table_url
        endpoint = f"/{self.config.airtable_table_name}"
        log_api_request(self.name, method, endpoint, dict(params) if params else None)
        started = time.monotonic()

        try:
            response = await self.client.request(method, url, params=params, json=payload)
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"Airtable {method} {endpoint} failed: {e}") from e

        log_api_response(self.name, endpoint, response.status_code, time.monotonic() - started)

        if response.status_code >= 400:
            # Body may echo the formula; keep it out of anything client-facing
            self.logger.debug(f"Airtable error body: {response.text[:500]}")
            raise StoreUnavailable(f"Airtable {method} {endpoint} returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise StoreUnavailable(f"Airtable {method} {endpoint} returned invalid JSON") from e

    @staticmethod
    def _to_records(payload: Dict[str, Any]) -> List[StoreRecord]:
        return [
            StoreRecord(record_key=item["id"], fields=item.get("fields") or {})
            for item in payload.get("records", [])
        ]

    # ============================================
    # Read Operations
    # ============================================

    async def _select(
        self,
        fields: Optional[List[str]] = None,
        max_records: Optional[int] = None,
        formula: Optional[str] = None
    ) -> List[StoreRecord]:
        """Run a list query, following pagination offsets until done."""
        base_params: List[Tuple[str, Any]] = [("pageSize", self.PAGE_SIZE)]
        for field_name in fields or []:
            base_params.append(("fields[]", field_name))
        if max_records is not None:
            base_params.append(("maxRecords", max_records))
        if formula:
            base_params.append(("filterByFormula", formula))

        records: List[StoreRecord] = []
        offset: Optional[str] = None

        while True:
            params = list(base_params)
            if offset:
                params.append(("offset", offset))

            payload = await self._request("GET", params=params)
            records.extend(self._to_records(payload))

            offset = payload.get("offset")
            if not offset or (max_records is not None and len(records) >= max_records):
                break

        if max_records is not None:
            records = records[:max_records]
        return records

    async def list_all(
        self,
        fields: Optional[List[str]] = None,
        max_records: Optional[int] = None
    ) -> List[StoreRecord]:
        records = await self._select(fields=fields, max_records=max_records)
        self.logger.debug(f"Listed {len(records)} records")
        return records

    async def query_by_field(
        self,
        field_name: str,
        value: Any,
        fields: Optional[List[str]] = None,
        max_records: Optional[int] = None
    ) -> List[StoreRecord]:
        return await self._select(
            fields=fields,
            max_records=max_records,
            formula=build_equals_formula(field_name, value),
        )

    # ============================================
    # Write Operations
    # ============================================

    async def batch_update(self, updates: List[Dict[str, Any]]) -> List[StoreRecord]:
        updated: List[StoreRecord] = []
        for chunk in _chunks(updates, AIRTABLE_MAX_BATCH):
            payload = await self._request("PATCH", payload={"records": chunk})
            updated.extend(self._to_records(payload))
        if updated:
            self.logger.debug(f"Updated {len(updated)} records")
        return updated

    async def batch_create(self, records: List[Dict[str, Any]]) -> List[StoreRecord]:
        created: List[StoreRecord] = []
        for chunk in _chunks(records, AIRTABLE_MAX_BATCH):
            payload = await self._request("POST", payload={"records": chunk})
            created.extend(self._to_records(payload))
        if created:
            self.logger.debug(f"Created {len(created)} records")
        return created
