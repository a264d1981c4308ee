"""
Valkey client wrapper with connection retries.

The Valkey-backed flight cache uses this wrapper to obtain a pooled
``valkey.Valkey`` connection verified with PING.
"""

import asyncio
import logging
from typing import Optional

import valkey
from valkey.connection import ConnectionPool
from valkey.exceptions import ConnectionError, TimeoutError

from .config import ValkeyConfig, ValkeyConnectionError

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Valkey client with connection pooling and retry on connect.

    Features:
    - Connection pooling with configurable pool size
    - Exponential backoff between connection attempts
    """

    def __init__(self, config: Optional[ValkeyConfig] = None, max_connection_attempts: int = 5):
        """
        Initialize Valkey client with configuration.

        Args:
            config: ValkeyConfig instance, defaults to environment-based config
            max_connection_attempts: Attempts before giving up in connect()
        """
        self.config = config or ValkeyConfig.from_env()
        self._client: Optional[valkey.Valkey] = None
        self._connection_pool: Optional[ConnectionPool] = None
        self._is_connected = False
        self._max_connection_attempts = max_connection_attempts
        self._reconnect_delay = 1.0
        self._max_reconnect_delay = 30.0

        logger.info(f"Initializing Valkey client: {self.config}")

    async def connect(self) -> None:
        """
        Establish connection to Valkey server with retry logic.

        Raises:
            ValkeyConnectionError: If connection cannot be established after max attempts
        """
        if self._is_connected and self._client:
            return

        for attempt in range(1, self._max_connection_attempts + 1):
            try:
                logger.info(f"Attempting Valkey connection (attempt {attempt})")
                self._connection_pool = ConnectionPool(**self.config.to_connection_pool_kwargs())
                self._client = valkey.Valkey(connection_pool=self._connection_pool)

                if not await asyncio.to_thread(self._client.ping):
                    raise ConnectionError("Ping returned False")

                self._is_connected = True
                logger.info("Successfully connected to Valkey server")
                return

            except (ConnectionError, TimeoutError, OSError) as e:
                logger.warning(f"Valkey connection attempt {attempt} failed: {e}")

                if attempt >= self._max_connection_attempts:
                    error_msg = (
                        f"Failed to connect to Valkey after {self._max_connection_attempts} attempts. "
                        f"Last error: {e}"
                    )
                    logger.error(error_msg)
                    raise ValkeyConnectionError(error_msg) from e

                delay = min(self._reconnect_delay * (2 ** (attempt - 1)), self._max_reconnect_delay)
                logger.info(f"Retrying connection in {delay:.1f} seconds...")
                await asyncio.sleep(delay)

    async def disconnect(self) -> None:
        """Gracefully disconnect from Valkey server."""
        if self._connection_pool:
            try:
                self._connection_pool.disconnect()
                logger.info("Disconnected from Valkey server")
            finally:
                self._connection_pool = None
                self._client = None
                self._is_connected = False

    @property
    def client(self) -> valkey.Valkey:
        """
        Get the underlying Valkey client.

        Raises:
            ValkeyConnectionError: If client is not connected
        """
        if not self._client or not self._is_connected:
            raise ValkeyConnectionError("Client not connected. Call connect() first.")
        return self._client
