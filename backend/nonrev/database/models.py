"""
SQLAlchemy database models for the Non-Rev planner.

This module defines the two durable tables behind the pipeline:
- FlightCacheEntry (``flights``): cached provider results keyed by route or flight
- FlightSeat (``flight_seats``): one row per flight leg with the latest seat count
"""

from sqlalchemy import BigInteger, Boolean, Column, Integer, String, Text
from sqlalchemy.orm import declarative_base

# Create the declarative base for all models
Base = declarative_base()


class FlightCacheEntry(Base):
    """
    Cached flight data.

    ``data`` holds the JSON-serialized flight record(s); ``timestamp`` is the
    write time in epoch milliseconds and drives the freshness check.
    """
    __tablename__ = 'flights'

    key = Column(String(128), primary_key=True)  # e.g. 'route:JFKLAX_2025-04-15'
    data = Column(Text, nullable=False)
    timestamp = Column(BigInteger, nullable=False, index=True)

    def __repr__(self):
        return f"<FlightCacheEntry(key='{self.key}', timestamp={self.timestamp})>"


class FlightSeat(Base):
    """
    Latest known seat availability for one flight leg.

    ``seats_available`` is NULL for placeholder rows seeded by the pipeline;
    ``is_placeholder`` tells those apart from user reports.
    """
    __tablename__ = 'flight_seats'

    id = Column(Integer, primary_key=True, autoincrement=True)
    flight_key = Column(String(64), nullable=False, unique=True, index=True)  # 'JFK_LAX_2025-04-15_DL123'
    seats_available = Column(Integer, nullable=True)
    is_placeholder = Column(Boolean, nullable=False, default=False)
    updated_at = Column(BigInteger, nullable=False, index=True)

    def __repr__(self):
        return (
            f"<FlightSeat(flight_key='{self.flight_key}', seats={self.seats_available}, "
            f"placeholder={self.is_placeholder})>"
        )


def create_all_tables(engine):
    """
    Create all database tables using the provided SQLAlchemy engine.

    Args:
        engine: SQLAlchemy engine instance
    """
    Base.metadata.create_all(bind=engine)


__all__ = [
    'Base',
    'FlightCacheEntry',
    'FlightSeat',
    'create_all_tables',
]
