"""
aviationstack flight-status client.

Issues exactly one HTTP request per call: no retries, no caching, no
deduplication and no sorting. Failures surface as ``UpstreamError`` or
``UpstreamTimeout``; the access key never appears in logs or messages.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

import requests

from ..exceptions import ConfigurationError, UpstreamError, UpstreamTimeout
from ..models.cache import UpstreamPage
from ..models.flight import FlightRecord

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class AviationstackClient:
    """Paginated access to aviationstack's ``/flights`` endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "http://api.aviationstack.com/v1",
        timeout: float = 10.0,
        max_page_size: int = MAX_PAGE_SIZE,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            api_key: aviationstack access key
            base_url: API base URL (without the ``/flights`` path)
            timeout: Per-request timeout in seconds
            max_page_size: Plan limit on records per request
            session: Optional pre-configured requests session
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_page_size = max_page_size
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", "NonRevPlanner/1.0")

    def _redact(self, text: str) -> str:
        if self.api_key:
            return text.replace(self.api_key, "***")
        return text

    @staticmethod
    def _error_message(body: Any, fallback: str) -> str:
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            return str(error.get("message") or error.get("info") or error.get("code") or fallback)
        return fallback

    def fetch_page(
        self,
        origin: str,
        destination: Optional[str],
        flight_date: date,
        offset: int = 0,
        limit: int = MAX_PAGE_SIZE,
    ) -> UpstreamPage:
        """
        Fetch one page of flights departing ``origin`` on ``flight_date``.

        Args:
            origin: Departure IATA code
            destination: Arrival IATA code, or None for all departures
            flight_date: Civil flight date
            offset: Index of the first record to return
            limit: Records requested (clamped to the plan limit)

        Returns:
            UpstreamPage with the keyable records, the provider's reported
            total and the number of entries actually returned

        Raises:
            UpstreamError: Non-2xx response, error envelope or unreadable body
            UpstreamTimeout: The request exceeded the configured timeout
        """
        if not self.api_key:
            raise ConfigurationError("AVIATIONSTACK_API_KEY is not configured")

        limit = max(1, min(limit, self.max_page_size))
        params: Dict[str, Any] = {
            "access_key": self.api_key,
            "dep_iata": origin,
            "flight_date": flight_date.isoformat(),
            "offset": offset,
            "limit": limit,
        }
        if destination:
            params["arr_iata"] = destination

        logger.info(
            f"Fetching flights {origin}->{destination or '*'} on {flight_date} "
            f"(offset={offset}, limit={limit})"
        )

        try:
            response = self.session.get(f"{self.base_url}/flights", params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise UpstreamTimeout(
                f"aviationstack did not respond within {self.timeout:g}s"
            ) from e
        except requests.RequestException as e:
            raise UpstreamError(f"aviationstack request failed: {self._redact(str(e))}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.ok:
            message = self._error_message(body, response.reason or "request failed")
            raise UpstreamError(
                f"aviationstack {response.status_code}: {self._redact(message)}",
                status_code=response.status_code,
            )

        if not isinstance(body, dict):
            raise UpstreamError("aviationstack returned an unreadable response body")

        if body.get("error"):
            message = self._error_message(body, "provider reported an error")
            raise UpstreamError(f"aviationstack error: {self._redact(message)}", status_code=response.status_code)

        data = body.get("data") or []
        if not isinstance(data, list):
            raise UpstreamError("aviationstack response 'data' is not a list")

        records = []
        for raw in data:
            record = FlightRecord.from_provider(raw, fallback_date=flight_date)
            if record is not None:
                records.append(record)

        pagination = body.get("pagination") if isinstance(body.get("pagination"), dict) else {}
        reported_total = pagination.get("total")

        return UpstreamPage(
            records=records,
            reported_total=int(reported_total) if isinstance(reported_total, (int, float)) else None,
            raw_count=len(data),
            dropped=len(data) - len(records),
        )

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self.session.close()
