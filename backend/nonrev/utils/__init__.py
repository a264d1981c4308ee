"""Configuration and logging helpers."""

from .config import PlannerConfig, load_config, get_config, reset_config, configure_logging

__all__ = [
    "PlannerConfig",
    "load_config",
    "get_config",
    "reset_config",
    "configure_logging",
]
