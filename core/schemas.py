"""
Normalized Data Schemas

This module defines Pydantic models for the data flowing between the market
data client, the record store and the sync jobs.

Models:
    - StoreRecord: One row of the coins table (store record key + field map)
    - CoinListing: One entry of the upstream top-by-market-cap listing
    - PriceResponse: Body of GET /coins/price/{id}
    - ErrorResponse: Body of every API error
    - JobOutcome: Structured result of one sync job cycle
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================
# Record Store Schemas
# ============================================

class StoreRecord(BaseModel):
    """
    A single record of the coins table.

    Attributes:
        record_key: Store-assigned record identifier (Airtable "recXXXX"),
                    used for updates. Not the same thing as the coin id.
        fields: Field mapping as stored (id, name, symbol, market_cap, currentprice)

    Example:
        >>> record = StoreRecord(record_key="rec123", fields={"id": "bitcoin"})
        >>> record.coin_id
        'bitcoin'
    """

    record_key: str = Field(..., description="Store-assigned record key")
    fields: Dict[str, Any] = Field(default_factory=dict, description="Stored field values")

    @property
    def coin_id(self) -> Optional[str]:
        """Domain identifier held in the `id` field, if present."""
        return self.fields.get("id")

    def get(self, field_name: str, default: Any = None) -> Any:
        """Read a single field value."""
        return self.fields.get(field_name, default)


# ============================================
# Market Data Schemas
# ============================================

class CoinListing(BaseModel):
    """
    One coin of the ranked market listing.

    Only the fields persisted to the coins table are kept; CoinGecko returns
    many more (image, volume, ath, ...) which are ignored.

    Example:
        >>> CoinListing(id="bitcoin", name="Bitcoin", symbol="btc", market_cap=1.2e12).to_fields()
        {'id': 'bitcoin', 'name': 'Bitcoin', 'symbol': 'btc', 'market_cap': 1200000000000.0}
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="CoinGecko coin id", examples=["bitcoin"])
    name: str = Field(..., description="Display name", examples=["Bitcoin"])
    symbol: str = Field(..., description="Ticker symbol as reported upstream", examples=["btc"])
    market_cap: Optional[float] = Field(default=None, ge=0, description="Market cap in USD")

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Reject blank ids"""
        if not v.strip():
            raise ValueError("coin id must not be empty")
        return v

    def to_fields(self) -> Dict[str, Any]:
        """Field set written to the store for a new record."""
        return {
            "id": self.id,
            "name": self.name,
            "symbol": self.symbol,
            "market_cap": self.market_cap,
        }

    def to_update_fields(self) -> Dict[str, Any]:
        """Field set written to an existing record (the id never changes)."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "market_cap": self.market_cap,
        }


# ============================================
# API Schemas
# ============================================

class PriceResponse(BaseModel):
    """Price lookup result."""

    id: str
    price: Optional[float] = None


class ErrorResponse(BaseModel):
    """Generic error body. Never carries internal details."""

    error: str


# ============================================
# Sync Job Schemas
# ============================================

JobStatus = Literal["success", "partial", "skipped", "failed"]


class JobOutcome(BaseModel):
    """
    Result of one sync job cycle.

    Published on the event bus after every run and kept by the job monitor.

    Attributes:
        job: Job name ("price_refresh" or "listing_refresh")
        status: success (everything written), partial (some writes failed),
                skipped (nothing to do), failed (cycle abandoned)
        started_at: Cycle start time in UTC
        duration_seconds: Wall time of the cycle
        processed: Number of coins written successfully
        failed: Number of coins whose write failed or had no matching record
        error: Error message when status is failed
    """

    job: str
    status: JobStatus
    started_at: datetime
    duration_seconds: float = Field(default=0.0, ge=0)
    processed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    error: Optional[str] = None
    failed_ids: List[str] = Field(default_factory=list)
