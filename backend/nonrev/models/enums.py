"""
Enums for the Non-Rev planner.

This module contains the enumeration types shared by the pipeline,
the stores and the API layer.
"""

from enum import Enum
from typing import Optional


class FlightStatus(str, Enum):
    """Flight status as reported by the flight-status provider."""
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    LANDED = "landed"
    CANCELLED = "cancelled"
    DIVERTED = "diverted"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "FlightStatus":
        """Map a provider status string onto the enum; anything unrecognised is UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN


class ResultSource(str, Enum):
    """Where a search result set came from."""
    CACHE = "cache"
    API = "api"
