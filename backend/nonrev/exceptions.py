"""
Error kinds surfaced by the flight search pipeline.

Every error carries a stable ``error`` code for API consumers and a
human-readable ``details`` message. Messages never include provider
credentials.
"""

from typing import Any, Dict, Optional


class NonRevError(Exception):
    """Base class for all planner errors."""

    error_code = "InternalError"

    def __init__(self, details: str):
        super().__init__(details)
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the ``{error, details}`` envelope."""
        return {"error": self.error_code, "details": self.details}


class MissingParameter(NonRevError):
    """A required request parameter was not supplied."""

    error_code = "MissingParameter"


class InvalidInput(NonRevError):
    """Request data is present but malformed."""

    error_code = "InvalidInput"


class UpstreamError(NonRevError):
    """The flight-status provider returned a non-success response or an error envelope."""

    error_code = "UpstreamError"

    def __init__(self, details: str, status_code: Optional[int] = None):
        super().__init__(details)
        self.status_code = status_code


class UpstreamTimeout(NonRevError):
    """The flight-status provider did not answer within the configured timeout."""

    error_code = "UpstreamTimeout"


class StoreError(NonRevError):
    """A durable store operation failed."""

    error_code = "StoreError"


class ConfigurationError(NonRevError):
    """Planner settings are missing or invalid."""

    error_code = "ConfigurationError"


__all__ = [
    "NonRevError",
    "MissingParameter",
    "InvalidInput",
    "UpstreamError",
    "UpstreamTimeout",
    "StoreError",
    "ConfigurationError",
]
