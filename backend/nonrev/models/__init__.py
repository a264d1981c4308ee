"""
Non-Rev planner Pydantic models package.

This package contains the Pydantic v2 models used throughout the planner
for data validation, serialization, and type safety.
"""

# Enums
from .enums import (
    FlightStatus,
    ResultSource,
)

# Flight models
from .flight import (
    FlightRecord,
    EnrichedFlightRecord,
    parse_timestamp,
)

# Cache, seat and search models
from .cache import (
    CacheEntry,
    SeatRecord,
    UpstreamPage,
    SearchResult,
    ms_to_datetime,
)

__all__ = [
    # Enums
    "FlightStatus",
    "ResultSource",

    # Flight models
    "FlightRecord",
    "EnrichedFlightRecord",
    "parse_timestamp",

    # Cache and seat models
    "CacheEntry",
    "SeatRecord",
    "UpstreamPage",
    "SearchResult",
    "ms_to_datetime",
]
