"""
Wiring of the search pipeline from planner settings.
"""

import logging
from typing import Optional

from ..cache.client import ValkeyClient
from ..cache.store import FlightCacheStore, SqlFlightCacheStore, ValkeyFlightCacheStore
from ..database.config import DatabaseConfig
from ..exceptions import ConfigurationError
from ..utils.config import PlannerConfig
from .pipeline import FlightSearchPipeline
from .seat_store import SeatAvailabilityStore
from .upstream import AviationstackClient

logger = logging.getLogger(__name__)

# Valkey entries outlive the freshness window so staleness is decided by the pipeline
RETENTION_FACTOR = 3


async def build_cache_store(
    config: PlannerConfig,
    db_config: DatabaseConfig,
    valkey_client: Optional[ValkeyClient] = None,
) -> FlightCacheStore:
    """Create the configured flight cache backend."""
    if config.cache_backend == "sql":
        return SqlFlightCacheStore(db_config)

    if valkey_client is None:
        raise ConfigurationError("CACHE_BACKEND=valkey requires a Valkey client")
    await valkey_client.connect()
    retention_seconds = int(config.cache_freshness_hours * 3600 * RETENTION_FACTOR)
    return ValkeyFlightCacheStore(valkey_client.client, retention_seconds=retention_seconds)


async def build_pipeline(
    config: PlannerConfig,
    db_config: DatabaseConfig,
    valkey_client: Optional[ValkeyClient] = None,
) -> FlightSearchPipeline:
    """
    Build a pipeline from settings.

    Args:
        config: Planner settings
        db_config: Database holding the ``flights`` and ``flight_seats`` tables
        valkey_client: Client for the Valkey cache backend (owned by the caller)
    """
    cache_store = await build_cache_store(config, db_config, valkey_client)
    upstream = AviationstackClient(
        api_key=config.aviationstack_api_key,
        base_url=config.aviationstack_base_url,
        timeout=config.upstream_timeout_seconds,
        max_page_size=config.upstream_page_size,
    )
    logger.info(f"Search pipeline ready: {config}")
    return FlightSearchPipeline(
        cache_store=cache_store,
        seat_store=SeatAvailabilityStore(db_config),
        upstream=upstream,
        freshness_window_ms=config.freshness_window_ms,
        page_size=config.upstream_page_size,
        max_pages=config.upstream_max_pages,
        preferred_carriers=config.preferred_carriers,
        seed_placeholders=config.seed_placeholder_seats,
    )
