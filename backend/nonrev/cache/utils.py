"""
Cache key naming conventions.

Route-level and per-flight entries live in separate key namespaces so a
write at one granularity can never satisfy a lookup at the other.
"""

from datetime import date
from enum import Enum
from typing import Optional, Union


class CacheKeyPrefix(str, Enum):
    """Key namespaces for cached flight data."""

    ROUTE = "route"
    FLIGHT = "flight"


def _date_str(flight_date: Union[date, str]) -> str:
    return flight_date.isoformat() if isinstance(flight_date, date) else str(flight_date)


class CacheKeyBuilder:
    """
    Builder class for generating consistent cache keys.

    Example:
        CacheKeyBuilder.route_key("JFK", "LAX", date(2025, 4, 15))
        # Returns: "route:JFKLAX_2025-04-15"
    """

    @staticmethod
    def build_key(prefix: Union[CacheKeyPrefix, str], body: str) -> str:
        """Join a namespace prefix and a key body with a colon."""
        prefix_str = prefix.value if isinstance(prefix, CacheKeyPrefix) else str(prefix)
        return f"{prefix_str}:{body}"

    @staticmethod
    def route_key(origin: str, destination: Optional[str], flight_date: Union[date, str]) -> str:
        """
        Route-level key: ``route:{origin}{destination}_{date}``.

        Departures-only searches (no destination) use ``route:{origin}_{date}``.
        """
        body = f"{origin.upper()}{destination.upper() if destination else ''}_{_date_str(flight_date)}"
        return CacheKeyBuilder.build_key(CacheKeyPrefix.ROUTE, body)

    @staticmethod
    def flight_key(flight_number: str, flight_date: Union[date, str]) -> str:
        """Per-flight key: ``flight:{flight_number}_{date}``."""
        return CacheKeyBuilder.build_key(
            CacheKeyPrefix.FLIGHT, f"{flight_number.upper()}_{_date_str(flight_date)}"
        )
