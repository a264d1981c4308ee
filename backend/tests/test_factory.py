"""
Tests for pipeline wiring and the Valkey connection wrapper.
"""

import os
from unittest.mock import MagicMock, patch

import pytest

from nonrev.cache.client import ValkeyClient
from nonrev.cache.config import ValkeyConfig, ValkeyConnectionError
from nonrev.cache.store import SqlFlightCacheStore, ValkeyFlightCacheStore
from nonrev.exceptions import ConfigurationError
from nonrev.services.factory import build_cache_store, build_pipeline
from nonrev.utils.config import PlannerConfig


class FakeValkeyClient:
    """Stands in for ValkeyClient without a server."""

    def __init__(self):
        self.connected = False
        self.raw = MagicMock()

    async def connect(self):
        self.connected = True

    @property
    def client(self):
        return self.raw


class TestBuildCacheStore:
    """Test cache backend selection."""

    @pytest.mark.asyncio
    async def test_sql_backend(self, db_config):
        store = await build_cache_store(PlannerConfig(), db_config)
        assert isinstance(store, SqlFlightCacheStore)

    @pytest.mark.asyncio
    async def test_valkey_backend(self, db_config):
        fake = FakeValkeyClient()
        config = PlannerConfig(cache_backend="valkey", cache_freshness_hours=2)

        store = await build_cache_store(config, db_config, fake)

        assert isinstance(store, ValkeyFlightCacheStore)
        assert fake.connected is True
        assert store.client is fake.raw
        assert store.retention_seconds == 2 * 3600 * 3

    @pytest.mark.asyncio
    async def test_valkey_backend_requires_client(self, db_config):
        with pytest.raises(ConfigurationError):
            await build_cache_store(PlannerConfig(cache_backend="valkey"), db_config)


class TestBuildPipeline:

    @pytest.mark.asyncio
    async def test_settings_flow_into_pipeline(self, db_config):
        config = PlannerConfig(
            aviationstack_api_key="key",
            upstream_page_size=50,
            upstream_max_pages=2,
            cache_freshness_hours=1,
            preferred_carriers=["Alaska Airlines"],
            seed_placeholder_seats=False,
        )

        pipeline = await build_pipeline(config, db_config)

        assert pipeline.page_size == 50
        assert pipeline.max_pages == 2
        assert pipeline.freshness_window_ms == 3_600_000
        assert pipeline.preferred_carriers == ["Alaska Airlines"]
        assert pipeline.seed_placeholders is False
        assert pipeline.upstream.max_page_size == 50
        assert pipeline.upstream.api_key == "key"


class TestValkeyConfig:
    """Test Valkey settings."""

    def test_from_env(self):
        env = {"VALKEY_HOST": "cache.internal", "VALKEY_PORT": "6380", "VALKEY_PASSWORD": "pw"}
        with patch.dict(os.environ, env, clear=True):
            config = ValkeyConfig.from_env()

        kwargs = config.to_connection_pool_kwargs()
        assert kwargs["host"] == "cache.internal"
        assert kwargs["port"] == 6380
        assert kwargs["password"] == "pw"
        assert kwargs["decode_responses"] is True

    def test_str_hides_password(self):
        assert "pw" not in str(ValkeyConfig(password="pw"))


class TestValkeyClient:
    """Test the connection wrapper without a server."""

    def test_client_requires_connect(self):
        with pytest.raises(ValkeyConnectionError):
            ValkeyClient(ValkeyConfig()).client

    @pytest.mark.asyncio
    async def test_connect_and_disconnect(self):
        with patch("nonrev.cache.client.ConnectionPool") as pool_cls, \
                patch("nonrev.cache.client.valkey.Valkey") as valkey_cls:
            valkey_cls.return_value.ping.return_value = True
            client = ValkeyClient(ValkeyConfig())

            await client.connect()
            assert client.client is valkey_cls.return_value

            await client.disconnect()
            with pytest.raises(ValkeyConnectionError):
                client.client
            pool_cls.return_value.disconnect.assert_called_once()

    @pytest.mark.asyncio
    async def test_connect_gives_up(self):
        from valkey.exceptions import ConnectionError as ValkeyError

        with patch("nonrev.cache.client.ConnectionPool"), \
                patch("nonrev.cache.client.valkey.Valkey") as valkey_cls, \
                patch("nonrev.cache.client.asyncio.sleep") as sleep:
            valkey_cls.return_value.ping.side_effect = ValkeyError("refused")
            client = ValkeyClient(ValkeyConfig(), max_connection_attempts=2)

            with pytest.raises(ValkeyConnectionError):
                await client.connect()
            assert sleep.call_count == 1
