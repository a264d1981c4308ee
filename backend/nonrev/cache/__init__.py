"""
Caching layer for the Non-Rev planner.

This module contains the flight cache stores, the cache key scheme and the
Valkey client used by the Valkey-backed store.
"""

from .config import ValkeyConfig, ValkeyConnectionError
from .client import ValkeyClient
from .utils import CacheKeyPrefix, CacheKeyBuilder
from .store import FlightCacheStore, SqlFlightCacheStore, ValkeyFlightCacheStore

__all__ = [
    # Configuration
    "ValkeyConfig",
    "ValkeyConnectionError",

    # Client
    "ValkeyClient",

    # Keys
    "CacheKeyPrefix",
    "CacheKeyBuilder",

    # Stores
    "FlightCacheStore",
    "SqlFlightCacheStore",
    "ValkeyFlightCacheStore",
]
