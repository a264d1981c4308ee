"""
Tests for database engine configuration.
"""

import pytest
from sqlalchemy.pool import QueuePool, StaticPool

from nonrev.database.config import DatabaseConfig


class TestSqliteEngineConfig:
    """Test pool selection for SQLite URLs."""

    @pytest.mark.parametrize("url", ["sqlite://", "sqlite:///:memory:", "sqlite:///file:planner?mode=memory&uri=true"])
    def test_memory_urls(self, url):
        config = DatabaseConfig(url)
        assert config.is_memory is True
        assert config.engine_kwargs["poolclass"] is StaticPool

    def test_file_database_uses_a_pool_per_thread(self, tmp_path):
        config = DatabaseConfig(f"sqlite:///{tmp_path}/nonrev.db")
        assert config.is_memory is False
        assert "poolclass" not in config.engine_kwargs
        assert config.engine_kwargs["connect_args"]["check_same_thread"] is False

        config.create_tables()
        try:
            assert isinstance(config.engine.pool, QueuePool)
            assert config.list_tables() == ["flight_seats", "flights"]
        finally:
            config.close()

    def test_file_database_uses_wal(self, tmp_path):
        config = DatabaseConfig(f"sqlite:///{tmp_path}/nonrev.db")
        config.initialize()
        try:
            with config.engine.connect() as conn:
                assert conn.exec_driver_sql("PRAGMA journal_mode").scalar() == "wal"
        finally:
            config.close()

    def test_postgres_is_not_memory(self):
        assert DatabaseConfig("postgresql://u:p@localhost/nonrev").is_memory is False
