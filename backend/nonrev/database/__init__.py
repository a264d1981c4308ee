"""
Database package for the Non-Rev planner.

This package provides the SQLAlchemy models, configuration and upsert
helpers behind the flight cache and seat availability stores.
"""

from .models import (
    Base,
    FlightCacheEntry,
    FlightSeat,
    create_all_tables
)

from .config import (
    DatabaseConfig,
    get_database_config,
    initialize_database
)

from .statements import upsert_statement, insert_ignore_statement

__all__ = [
    # Models
    'Base',
    'FlightCacheEntry',
    'FlightSeat',
    'create_all_tables',

    # Configuration
    'DatabaseConfig',
    'get_database_config',
    'initialize_database',

    # Statements
    'upsert_statement',
    'insert_ignore_statement',
]
