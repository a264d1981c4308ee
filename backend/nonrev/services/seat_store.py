"""
Seat availability store over the ``flight_seats`` table.

One row per flight leg. User reports are native upserts (last write wins);
the pipeline's placeholder rows are insert-or-ignore so they can never
overwrite a real count.
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..database.config import DatabaseConfig
from ..database.models import FlightSeat
from ..database.statements import insert_ignore_statement, upsert_statement
from ..exceptions import InvalidInput, StoreError
from ..models.cache import SeatRecord

logger = logging.getLogger(__name__)

MAX_FLIGHT_KEY_LENGTH = 64


def validate_seat_update(flight_key, seats_available) -> int:
    """
    Reject malformed seat reports before anything touches the store.

    Whole-number floats such as ``4.0`` (JSON clients often send them) are
    accepted and returned as ``int``.

    Returns:
        int: The seat count to store

    Raises:
        InvalidInput: Empty or oversized key, or a seat count that is not a non-negative integer
    """
    if not isinstance(flight_key, str) or not flight_key.strip():
        raise InvalidInput("flightKey must be a non-empty string")
    if len(flight_key) > MAX_FLIGHT_KEY_LENGTH:
        raise InvalidInput(f"flightKey must be at most {MAX_FLIGHT_KEY_LENGTH} characters")
    if isinstance(seats_available, float) and seats_available.is_integer():
        seats_available = int(seats_available)
    # bool is an int subclass; True is not a seat count
    if isinstance(seats_available, bool) or not isinstance(seats_available, int):
        raise InvalidInput("seatsAvailable must be an integer")
    if seats_available < 0:
        raise InvalidInput("seatsAvailable must be zero or greater")
    return seats_available


class SeatAvailabilityStore:
    """Durable flight_key -> SeatRecord mapping."""

    def __init__(self, db_config: DatabaseConfig, chunk_size: int = 500):
        """
        Args:
            db_config: Database configuration providing sessions
            chunk_size: Maximum keys per IN query in get_many
        """
        self.db_config = db_config
        self.chunk_size = chunk_size

    def upsert(self, flight_key: str, seats_available: int, now: int) -> None:
        """
        Record a user-reported seat count, replacing any previous value.

        Raises:
            InvalidInput: Malformed input (no write is attempted)
            StoreError: The write failed
        """
        seats_available = validate_seat_update(flight_key, seats_available)

        stmt = upsert_statement(
            self.db_config.dialect_name,
            FlightSeat.__table__,
            {
                "flight_key": flight_key,
                "seats_available": seats_available,
                "is_placeholder": False,
                "updated_at": now,
            },
            conflict_columns=["flight_key"],
            update_columns=["seats_available", "is_placeholder", "updated_at"],
        )
        try:
            with self.db_config.get_session_context() as session:
                session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(f"Seat update failed for '{flight_key}': {e}") from e
        logger.info(f"Recorded {seats_available} seats for {flight_key}")

    def seed_placeholder(self, flight_key: str, now: int) -> bool:
        """
        Create an unseeded row for a newly observed leg; existing rows are left alone.

        Returns:
            bool: True if a row was created
        """
        stmt = insert_ignore_statement(
            self.db_config.dialect_name,
            FlightSeat.__table__,
            {
                "flight_key": flight_key,
                "seats_available": None,
                "is_placeholder": True,
                "updated_at": now,
            },
            conflict_columns=["flight_key"],
        )
        try:
            with self.db_config.get_session_context() as session:
                result = session.execute(stmt)
                return bool(result.rowcount)
        except SQLAlchemyError as e:
            raise StoreError(f"Seat placeholder failed for '{flight_key}': {e}") from e

    def get_many(self, flight_keys: Iterable[str]) -> Dict[str, SeatRecord]:
        """
        Batch lookup for the seat join.

        Keys with no row are simply absent from the result.
        """
        keys: List[str] = sorted(set(flight_keys))
        records: Dict[str, SeatRecord] = {}
        if not keys:
            return records

        try:
            with self.db_config.get_session_context() as session:
                for start in range(0, len(keys), self.chunk_size):
                    chunk = keys[start:start + self.chunk_size]
                    rows = session.execute(
                        select(FlightSeat).where(FlightSeat.flight_key.in_(chunk))
                    ).scalars()
                    for row in rows:
                        records[row.flight_key] = SeatRecord.model_validate(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Seat lookup failed: {e}") from e

        return records

    def get(self, flight_key: str) -> Optional[SeatRecord]:
        return self.get_many([flight_key]).get(flight_key)
