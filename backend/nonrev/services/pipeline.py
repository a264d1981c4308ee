"""
Flight search and enrichment pipeline.

Given a route and a date, the pipeline decides between the flight cache and
the upstream provider, pages through the provider, drops unkeyable and
duplicate records, orders the result, writes it back to the cache and joins
the seat availability table onto every flight.

All store and HTTP calls are blocking and run in worker threads, so one
``search`` is a single awaitable unit with no partial results.
"""

import asyncio
import logging
import re
import time
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from ..cache.store import FlightCacheStore
from ..cache.utils import CacheKeyBuilder
from ..exceptions import InvalidInput, MissingParameter, StoreError
from ..models.cache import SearchResult, SeatRecord, ms_to_datetime
from ..models.enums import ResultSource
from ..models.flight import EnrichedFlightRecord, FlightRecord
from .seat_store import SeatAvailabilityStore, validate_seat_update
from .upstream import AviationstackClient

logger = logging.getLogger(__name__)

IATA_PATTERN = re.compile(r"^[A-Z]{3}$")
_FLIGHT_LIST = TypeAdapter(List[FlightRecord])
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def normalize_airport(value: Optional[str], name: str) -> str:
    """Upper-case and validate an IATA airport code."""
    if value is None or not str(value).strip():
        raise MissingParameter(f"Missing {name}")
    code = str(value).strip().upper()
    if not IATA_PATTERN.match(code):
        raise InvalidInput(f"{name} must be a three-letter IATA code")
    return code


def normalize_date(value: Union[date, str, None]) -> date:
    """Accept a date or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        raise MissingParameter("Missing date")
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise InvalidInput("date must be an ISO date (YYYY-MM-DD)") from e


def dedupe_records(records: Iterable[FlightRecord]) -> List[FlightRecord]:
    """Keep the first record per identity key, preserving order."""
    seen = set()
    unique = []
    for record in records:
        if record.identity_key in seen:
            continue
        seen.add(record.identity_key)
        unique.append(record)
    return unique


def is_preferred(record: FlightRecord, preferred_carriers: Sequence[str]) -> bool:
    """Match the operating airline by name or IATA code, case-insensitively."""
    wanted = {carrier.strip().lower() for carrier in preferred_carriers if carrier.strip()}
    if not wanted:
        return False
    names = {(record.airline_name or "").lower(), (record.airline_code or "").lower()}
    return bool(wanted & names)


def sort_records(
    records: Sequence[FlightRecord], preferred_carriers: Sequence[str] = ()
) -> List[FlightRecord]:
    """
    Order by scheduled departure instant, then preferred carriers first.

    Departures that cannot be parsed go last in their original order.
    The sort is stable, so fully tied records keep their relative order.
    """
    def sort_key(record: FlightRecord) -> Tuple[bool, datetime, bool]:
        instant = record.departure_instant
        return (
            instant is None,
            instant or _EARLIEST,
            not is_preferred(record, preferred_carriers),
        )

    return sorted(records, key=sort_key)


class FlightSearchPipeline:
    """
    Cache-aside flight search with seat enrichment.

    Features:
    - Route-level cache with a configurable freshness window
    - Sequential upstream paging bounded by a page ceiling
    - Stable deduplication and chronological ordering
    - Best-effort persistence: single write failures never fail a search
    """

    def __init__(
        self,
        cache_store: FlightCacheStore,
        seat_store: SeatAvailabilityStore,
        upstream: AviationstackClient,
        freshness_window_ms: int,
        page_size: int = 100,
        max_pages: int = 5,
        preferred_carriers: Sequence[str] = (),
        seed_placeholders: bool = True,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Args:
            cache_store: Flight cache backend
            seat_store: Seat availability store
            upstream: Flight-status provider client
            freshness_window_ms: How long cached flights are trusted
            page_size: Records requested per upstream call
            max_pages: Hard ceiling on upstream calls per search
            preferred_carriers: Airline names or codes surfaced first among equal departures
            seed_placeholders: Create unseeded seat rows for newly observed legs
            clock: Returns the current time in epoch milliseconds
        """
        if page_size < 1 or max_pages < 1:
            raise ValueError("page_size and max_pages must be positive")
        self.cache_store = cache_store
        self.seat_store = seat_store
        self.upstream = upstream
        self.freshness_window_ms = freshness_window_ms
        self.page_size = page_size
        self.max_pages = max_pages
        self.preferred_carriers = list(preferred_carriers)
        self.seed_placeholders = seed_placeholders
        self.clock = clock

    async def search(
        self,
        origin: Optional[str],
        destination: Optional[str],
        flight_date: Union[date, str, None],
    ) -> SearchResult:
        """
        Enriched, deduplicated, ordered flights for a route and date.

        Args:
            origin: Departure IATA code
            destination: Arrival IATA code, or None for every departure from ``origin``
            flight_date: Civil date (``date`` or ISO string)

        Returns:
            SearchResult with the flights and whether they came from cache or the API

        Raises:
            MissingParameter / InvalidInput: Bad search parameters
            UpstreamError / UpstreamTimeout: Provider failure on a cache miss
            StoreError: The seat join failed
        """
        origin = normalize_airport(origin, "origin")
        if destination is not None and str(destination).strip():
            destination = normalize_airport(destination, "destination")
        else:
            destination = None
        flight_date = normalize_date(flight_date)

        route_key = CacheKeyBuilder.route_key(origin, destination, flight_date)
        now = self.clock()

        records = await self._read_cached_route(route_key, now)
        if records is not None:
            logger.info(f"Cache hit for {route_key} ({len(records)} flights)")
            source = ResultSource.CACHE
            records = sort_records(dedupe_records(records), self.preferred_carriers)
        else:
            logger.info(f"Cache miss for {route_key}, querying upstream")
            source = ResultSource.API
            fetched = await self._fetch_all(origin, destination, flight_date)
            records = sort_records(dedupe_records(fetched), self.preferred_carriers)
            await asyncio.to_thread(self._persist, route_key, records, now)

        flights = await self._enrich(records)
        return SearchResult(flights=flights, source=source)

    async def get_flight(
        self, flight_number: Optional[str], flight_date: Union[date, str, None]
    ) -> Optional[EnrichedFlightRecord]:
        """
        Serve one flight from the per-flight cache namespace.

        Returns None when no fresh entry exists; the provider is not queried.
        """
        if flight_number is None or not str(flight_number).strip():
            raise MissingParameter("Missing flight")
        flight_date = normalize_date(flight_date)
        key = CacheKeyBuilder.flight_key(str(flight_number).strip(), flight_date)

        try:
            entry = await asyncio.to_thread(
                self.cache_store.lookup, key, self.freshness_window_ms, self.clock()
            )
        except StoreError as e:
            logger.warning(f"Cache lookup failed for {key}: {e}")
            return None
        if entry is None:
            return None

        try:
            record = FlightRecord.model_validate_json(entry.payload)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

        enriched = await self._enrich([record])
        return enriched[0]

    async def record_seats(self, flight_key: str, seats_available: int) -> None:
        """
        Store a user-reported seat count for one leg.

        Raises:
            InvalidInput: Malformed input; nothing is written
            StoreError: The write failed
        """
        seats_available = validate_seat_update(flight_key, seats_available)
        await asyncio.to_thread(self.seat_store.upsert, flight_key, seats_available, self.clock())

    async def _read_cached_route(self, route_key: str, now: int) -> Optional[List[FlightRecord]]:
        try:
            entry = await asyncio.to_thread(
                self.cache_store.lookup, route_key, self.freshness_window_ms, now
            )
        except StoreError as e:
            logger.warning(f"Cache lookup failed for {route_key}, treating as miss: {e}")
            return None
        if entry is None:
            return None

        try:
            return _FLIGHT_LIST.validate_json(entry.payload)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry {route_key}: {e}")
            return None

    async def _fetch_all(
        self, origin: str, destination: Optional[str], flight_date: date
    ) -> List[FlightRecord]:
        """Page through the provider until a stop condition is met."""
        records: List[FlightRecord] = []
        offset = 0
        received = 0
        dropped = 0

        for page_number in range(1, self.max_pages + 1):
            page = await asyncio.to_thread(
                self.upstream.fetch_page, origin, destination, flight_date, offset, self.page_size
            )
            records.extend(page.records)
            received += page.raw_count
            dropped += page.dropped

            if page.raw_count == 0:
                break
            # A short page ends the data regardless of the reported total
            if page.raw_count < self.page_size:
                break
            if page.reported_total is not None and received >= page.reported_total:
                break
            if page_number == self.max_pages:
                logger.warning(
                    f"Stopped paging {origin}->{destination or '*'} at the {self.max_pages}-page ceiling "
                    f"({received} of {page.reported_total if page.reported_total is not None else '?'} records)"
                )
            offset += page.raw_count

        if dropped:
            logger.debug(f"Dropped {dropped} upstream records missing identity fields")
        return records

    def _persist(self, route_key: str, records: List[FlightRecord], now: int) -> None:
        """Write the batch, per-flight entries and seat placeholders; log and skip failures."""
        try:
            payload = _FLIGHT_LIST.dump_json(records).decode()
            self.cache_store.store(route_key, payload, now)
        except StoreError as e:
            logger.error(f"Failed to cache {route_key}: {e}")

        failures = 0
        for record in records:
            flight_key = CacheKeyBuilder.flight_key(record.flight_number, record.flight_date)
            try:
                self.cache_store.store(flight_key, record.model_dump_json(), now)
            except StoreError as e:
                failures += 1
                logger.warning(f"Failed to cache {flight_key}: {e}")

            if not self.seed_placeholders:
                continue
            try:
                self.seat_store.seed_placeholder(record.seat_key, now)
            except StoreError as e:
                failures += 1
                logger.warning(f"Failed to seed seat row for {record.seat_key}: {e}")

        if failures:
            logger.warning(f"{failures} write(s) failed while persisting {route_key}")

    async def _enrich(self, records: List[FlightRecord]) -> List[EnrichedFlightRecord]:
        seats: Dict[str, SeatRecord] = await asyncio.to_thread(
            self.seat_store.get_many, {record.seat_key for record in records}
        )

        enriched = []
        for record in records:
            seat = seats.get(record.seat_key)
            reported = seat is not None and not seat.is_placeholder and seat.seats_available is not None
            enriched.append(
                EnrichedFlightRecord(
                    **record.model_dump(),
                    seats_available=seat.seats_available if reported else None,
                    seats_updated_at=ms_to_datetime(seat.updated_at) if reported else None,
                    preferred_carrier=is_preferred(record, self.preferred_carriers),
                )
            )
        return enriched
