"""
Shared fixtures and fakes for the planner test suite.

Everything runs against an in-memory SQLite database and a scripted
upstream provider, so no network, Valkey server or API key is needed.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import pytest

from nonrev.cache.store import SqlFlightCacheStore
from nonrev.database.config import DatabaseConfig
from nonrev.models.cache import UpstreamPage
from nonrev.models.flight import FlightRecord
from nonrev.services.pipeline import FlightSearchPipeline
from nonrev.services.seat_store import SeatAvailabilityStore

# 2025-04-14T00:00:00Z
NOW = 1_744_588_800_000
HOUR_MS = 60 * 60 * 1000
WINDOW = 24 * HOUR_MS


def make_raw_flight(
    flight_iata: str,
    dep: str = "JFK",
    arr: str = "LAX",
    departure: Optional[str] = "2025-04-15T08:00:00+00:00",
    arrival: Optional[str] = "2025-04-15T11:30:00+00:00",
    airline: str = "Delta Air Lines",
    airline_iata: str = "DL",
    flight_date: Optional[str] = "2025-04-15",
    status: str = "scheduled",
) -> Dict[str, Any]:
    """Build an aviationstack-shaped flight entry."""
    return {
        "flight_date": flight_date,
        "flight_status": status,
        "departure": {
            "airport": "John F Kennedy International",
            "iata": dep,
            "terminal": "4",
            "gate": "B22",
            "scheduled": departure,
        },
        "arrival": {
            "airport": "Los Angeles International",
            "iata": arr,
            "scheduled": arrival,
        },
        "airline": {"name": airline, "iata": airline_iata},
        "flight": {"number": flight_iata[2:], "iata": flight_iata},
        "aircraft": {"iata": "A321"},
    }


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeUpstream:
    """Scripted provider: returns one scripted page per call, then empty pages."""

    def __init__(
        self,
        pages: Optional[List[List[Dict[str, Any]]]] = None,
        reported_total: Optional[int] = None,
        error: Optional[Exception] = None,
    ):
        self.pages = pages or []
        self.reported_total = reported_total
        self.error = error
        self.calls: List[tuple] = []

    def fetch_page(self, origin, destination, flight_date: date, offset: int, limit: int) -> UpstreamPage:
        self.calls.append((origin, destination, flight_date, offset, limit))
        if self.error is not None:
            raise self.error

        index = len(self.calls) - 1
        data = self.pages[index] if index < len(self.pages) else []
        records = [
            record for record in (FlightRecord.from_provider(raw, flight_date) for raw in data)
            if record is not None
        ]
        return UpstreamPage(
            records=records,
            reported_total=self.reported_total,
            raw_count=len(data),
            dropped=len(data) - len(records),
        )


@pytest.fixture
def db_config():
    """In-memory SQLite database with the planner tables."""
    config = DatabaseConfig("sqlite:///:memory:")
    config.create_tables()
    yield config
    config.close()


@pytest.fixture
def cache_store(db_config):
    return SqlFlightCacheStore(db_config)


@pytest.fixture
def seat_store(db_config):
    return SeatAvailabilityStore(db_config)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_pipeline(cache_store, seat_store, clock):
    """Factory for pipelines wired to the in-memory stores."""

    def _make(upstream: FakeUpstream, **overrides) -> FlightSearchPipeline:
        options = {
            "cache_store": cache_store,
            "seat_store": seat_store,
            "upstream": upstream,
            "freshness_window_ms": WINDOW,
            "page_size": 100,
            "max_pages": 5,
            "preferred_carriers": ["Delta Air Lines", "United Airlines"],
            "seed_placeholders": True,
            "clock": clock,
        }
        options.update(overrides)
        return FlightSearchPipeline(**options)

    return _make
