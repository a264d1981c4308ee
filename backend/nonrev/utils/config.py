"""
Environment configuration loader with validation for the Non-Rev planner.
"""

import logging
import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from rich.logging import RichHandler

from ..exceptions import ConfigurationError

MILLISECONDS_PER_HOUR = 60 * 60 * 1000


class PlannerConfig(BaseModel):
    """Configuration model for the flight search pipeline with validation."""

    # Upstream flight-status provider
    aviationstack_api_key: Optional[str] = Field(
        default=None, description="aviationstack access key"
    )
    aviationstack_base_url: str = Field(
        default="http://api.aviationstack.com/v1",
        description="aviationstack API base URL",
    )
    upstream_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Per-request upstream timeout in seconds"
    )
    upstream_page_size: int = Field(
        default=100, ge=1, le=100, description="Records requested per upstream page"
    )
    upstream_max_pages: int = Field(
        default=5, ge=1, description="Hard ceiling on upstream pages per search"
    )

    # Caching
    cache_backend: str = Field(default="sql", description="Flight cache backend (sql or valkey)")
    cache_freshness_hours: float = Field(
        default=24.0, gt=0, description="How long cached flight data is trusted"
    )

    # Enrichment
    seed_placeholder_seats: bool = Field(
        default=True, description="Create unseeded seat rows for newly observed flights"
    )
    preferred_carriers: List[str] = Field(
        default_factory=lambda: ["Delta Air Lines", "United Airlines"],
        description="Airline names or codes surfaced first among equal departures",
    )

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        """Only the SQL and Valkey backends exist."""
        if v.lower() not in ("sql", "valkey"):
            raise ValueError("Cache backend must be 'sql' or 'valkey'")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @property
    def freshness_window_ms(self) -> int:
        """Freshness window in epoch milliseconds, the unit stored alongside cache entries."""
        return int(self.cache_freshness_hours * MILLISECONDS_PER_HOUR)

    def __str__(self) -> str:
        """String representation hiding the access key."""
        key_display = "***" if self.aviationstack_api_key else "None"
        return (
            f"PlannerConfig(api_key={key_display}, base_url={self.aviationstack_base_url}, "
            f"cache_backend={self.cache_backend}, freshness_hours={self.cache_freshness_hours}, "
            f"page_size={self.upstream_page_size}, max_pages={self.upstream_max_pages})"
        )


def _parse_list(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config(env_file: Optional[str] = None) -> PlannerConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Optional path to .env file. If None, looks for .env in current directory.

    Returns:
        PlannerConfig: Validated configuration object

    Raises:
        ConfigurationError: If configuration is invalid
    """
    if env_file is None:
        env_file = ".env"

    if os.path.exists(env_file):
        load_dotenv(env_file)

    config_data: Dict[str, Any] = {
        "aviationstack_api_key": os.getenv("AVIATIONSTACK_API_KEY") or None,
        "aviationstack_base_url": os.getenv(
            "AVIATIONSTACK_BASE_URL", "http://api.aviationstack.com/v1"
        ),
        "upstream_timeout_seconds": os.getenv("UPSTREAM_TIMEOUT_SECONDS", "10"),
        "upstream_page_size": os.getenv("UPSTREAM_PAGE_SIZE", "100"),
        "upstream_max_pages": os.getenv("UPSTREAM_MAX_PAGES", "5"),
        "cache_backend": os.getenv("CACHE_BACKEND", "sql"),
        "cache_freshness_hours": os.getenv("CACHE_FRESHNESS_HOURS", "24"),
        "seed_placeholder_seats": os.getenv("SEED_PLACEHOLDER_SEATS", "true").lower()
        in ("true", "1", "yes", "on"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
    }

    preferred = _parse_list(os.getenv("PREFERRED_CARRIERS"))
    if preferred is not None:
        config_data["preferred_carriers"] = preferred

    try:
        return PlannerConfig(**config_data)
    except Exception as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def configure_logging(level: str = "INFO") -> None:
    """Route log records through rich for the CLI and the API server."""
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


# Global configuration instance
_config: Optional[PlannerConfig] = None


def get_config() -> PlannerConfig:
    """
    Get the global configuration instance, loading it if necessary.

    Returns:
        PlannerConfig: The global configuration object
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration so the next call reloads the environment."""
    global _config
    _config = None
