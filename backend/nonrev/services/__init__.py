"""
Business logic services for the Non-Rev planner.

This module contains the upstream flight-status client, the seat
availability store and the search pipeline that ties them to the cache.
"""

from .upstream import AviationstackClient
from .seat_store import SeatAvailabilityStore, validate_seat_update
from .pipeline import (
    FlightSearchPipeline,
    dedupe_records,
    sort_records,
    is_preferred,
    now_ms,
)
from .factory import build_pipeline

__all__ = [
    'AviationstackClient',
    'SeatAvailabilityStore',
    'validate_seat_update',
    'FlightSearchPipeline',
    'dedupe_records',
    'sort_records',
    'is_preferred',
    'now_ms',
    'build_pipeline',
]
