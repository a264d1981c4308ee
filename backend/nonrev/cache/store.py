"""
Flight cache stores.

A flight cache store maps a namespaced key to a serialized flight payload
and its write time. Lookups are pure reads: stale entries are filtered out
by the freshness predicate, never deleted on the read path.

Two durable backends are provided:
- SqlFlightCacheStore: the ``flights`` table (default)
- ValkeyFlightCacheStore: one Valkey string per key
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from valkey.exceptions import ValkeyError

from ..database.config import DatabaseConfig
from ..database.models import FlightCacheEntry
from ..database.statements import upsert_statement
from ..exceptions import StoreError
from ..models.cache import CacheEntry

logger = logging.getLogger(__name__)


class FlightCacheStore(ABC):
    """Durable key -> (payload, stored_at) mapping with a caller-supplied freshness window."""

    @abstractmethod
    def lookup(
        self, key: str, freshness_window: int, now: int, prefix: bool = False
    ) -> Optional[CacheEntry]:
        """
        Return the entry for ``key`` if it is still fresh.

        Args:
            key: Exact key, or key prefix when ``prefix`` is set
            freshness_window: Window in milliseconds
            now: Current time in epoch milliseconds
            prefix: Match any key starting with ``key``; the freshest entry wins

        Returns:
            CacheEntry, or None on a miss or when every candidate is stale
        """

    @abstractmethod
    def store(self, key: str, payload: str, now: int) -> None:
        """Write ``payload`` under ``key``, replacing any existing entry."""

    @abstractmethod
    def purge_expired(self, older_than: int) -> int:
        """Delete entries written before ``older_than``; maintenance only."""


class SqlFlightCacheStore(FlightCacheStore):
    """Flight cache backed by the ``flights`` table."""

    def __init__(self, db_config: DatabaseConfig):
        self.db_config = db_config

    def lookup(
        self, key: str, freshness_window: int, now: int, prefix: bool = False
    ) -> Optional[CacheEntry]:
        table = FlightCacheEntry
        stmt = select(table).where(table.timestamp > now - freshness_window)
        if prefix:
            stmt = stmt.where(table.key.startswith(key, autoescape=True))
        else:
            stmt = stmt.where(table.key == key)
        stmt = stmt.order_by(table.timestamp.desc()).limit(1)

        try:
            with self.db_config.get_session_context() as session:
                row = session.execute(stmt).scalars().first()
                if row is None:
                    return None
                return CacheEntry(key=row.key, payload=row.data, stored_at=row.timestamp)
        except SQLAlchemyError as e:
            raise StoreError(f"Cache lookup failed for '{key}': {e}") from e

    def store(self, key: str, payload: str, now: int) -> None:
        stmt = upsert_statement(
            self.db_config.dialect_name,
            FlightCacheEntry.__table__,
            {"key": key, "data": payload, "timestamp": now},
            conflict_columns=["key"],
            update_columns=["data", "timestamp"],
        )
        try:
            with self.db_config.get_session_context() as session:
                session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(f"Cache write failed for '{key}': {e}") from e
        logger.debug(f"Cached {key}")

    def purge_expired(self, older_than: int) -> int:
        stmt = delete(FlightCacheEntry).where(FlightCacheEntry.timestamp < older_than)
        try:
            with self.db_config.get_session_context() as session:
                result = session.execute(stmt)
                return result.rowcount or 0
        except SQLAlchemyError as e:
            raise StoreError(f"Cache purge failed: {e}") from e


def _escape_glob(value: str) -> str:
    """Escape Valkey glob metacharacters so a key can be used as a literal SCAN prefix."""
    for char in ("\\", "*", "?", "[", "]"):
        value = value.replace(char, "\\" + char)
    return value


class ValkeyFlightCacheStore(FlightCacheStore):
    """
    Flight cache backed by Valkey.

    Each entry is a JSON document ``{"data": ..., "timestamp": ...}``. An
    optional retention period sets a server-side expiry; it must exceed any
    freshness window the pipeline uses so the freshness predicate, not the
    expiry, decides reuse.
    """

    def __init__(self, client, key_prefix: str = "nonrev:", retention_seconds: Optional[int] = None):
        """
        Args:
            client: ``valkey.Valkey`` (or compatible) client with ``decode_responses=True``
            key_prefix: Namespace prepended to every key
            retention_seconds: Optional server-side expiry for written entries
        """
        self.client = client
        self.key_prefix = key_prefix
        self.retention_seconds = retention_seconds

    def _decode(self, full_key: str, raw: Optional[str]) -> Optional[CacheEntry]:
        if raw is None:
            return None
        try:
            document = json.loads(raw)
            return CacheEntry(
                key=full_key[len(self.key_prefix):],
                payload=document["data"],
                stored_at=int(document["timestamp"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed cache entry {full_key}: {e}")
            return None

    def lookup(
        self, key: str, freshness_window: int, now: int, prefix: bool = False
    ) -> Optional[CacheEntry]:
        try:
            if prefix:
                pattern = _escape_glob(self.key_prefix + key) + "*"
                full_keys = list(self.client.scan_iter(match=pattern))
                values = self.client.mget(full_keys) if full_keys else []
            else:
                full_keys = [self.key_prefix + key]
                values = [self.client.get(full_keys[0])]
        except ValkeyError as e:
            raise StoreError(f"Cache lookup failed for '{key}': {e}") from e

        best: Optional[CacheEntry] = None
        for full_key, raw in zip(full_keys, values):
            entry = self._decode(full_key, raw)
            if entry is None or not entry.is_fresh(now, freshness_window):
                continue
            if best is None or entry.stored_at > best.stored_at:
                best = entry
        return best

    def store(self, key: str, payload: str, now: int) -> None:
        document = json.dumps({"data": payload, "timestamp": now})
        try:
            self.client.set(self.key_prefix + key, document, ex=self.retention_seconds)
        except ValkeyError as e:
            raise StoreError(f"Cache write failed for '{key}': {e}") from e
        logger.debug(f"Cached {key}")

    def purge_expired(self, older_than: int) -> int:
        removed = 0
        try:
            for full_key in self.client.scan_iter(match=_escape_glob(self.key_prefix) + "*"):
                entry = self._decode(full_key, self.client.get(full_key))
                if entry is not None and entry.stored_at < older_than:
                    removed += self.client.delete(full_key)
        except ValkeyError as e:
            raise StoreError(f"Cache purge failed: {e}") from e
        return removed
