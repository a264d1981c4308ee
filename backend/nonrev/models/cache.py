"""
Cache entry, seat record and search result models for the Non-Rev planner.

These are the shapes that cross the boundaries between the pipeline, the
durable stores and the upstream client.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import ResultSource
from .flight import EnrichedFlightRecord, FlightRecord


def ms_to_datetime(value: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class CacheEntry(BaseModel):
    """
    A previously fetched batch of flights (or a single flight).

    Entries are replaced or ignored once stale, never mutated.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    key: str = Field(..., min_length=1, description="Namespaced cache key")
    payload: str = Field(..., description="Serialized flight record(s)")
    stored_at: int = Field(..., ge=0, description="Write time in epoch milliseconds")

    def is_fresh(self, now: int, freshness_window: int) -> bool:
        """Reusable only while ``now - stored_at < freshness_window``."""
        return now - self.stored_at < freshness_window


class SeatRecord(BaseModel):
    """
    Most recently known seat availability for one flight leg.

    Placeholder rows mark a leg the pipeline has seen but nobody has
    reported on yet; they never carry a seat count.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    flight_key: str = Field(..., min_length=1, description="Seat join key")
    seats_available: Optional[int] = Field(None, ge=0, description="Reported open seats")
    updated_at: int = Field(..., ge=0, description="Update time in epoch milliseconds")
    is_placeholder: bool = Field(default=False, description="Seeded by the pipeline, not user data")


class UpstreamPage(BaseModel):
    """One page of provider results."""

    records: List[FlightRecord] = Field(default_factory=list, description="Parsed, keyable records")
    reported_total: Optional[int] = Field(None, ge=0, description="Total the provider claims to have, if reported")
    raw_count: int = Field(default=0, ge=0, description="Entries the provider returned on this page")
    dropped: int = Field(default=0, ge=0, description="Entries missing identity fields")


class SearchResult(BaseModel):
    """Enriched, sorted, deduplicated flights plus where they came from."""

    flights: List[EnrichedFlightRecord] = Field(default_factory=list)
    source: ResultSource
