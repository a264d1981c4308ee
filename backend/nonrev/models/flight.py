"""
Flight-related Pydantic models for the Non-Rev planner.

This module contains the normalized flight record built from provider data
and the enriched record returned to API consumers, with explicit handling
of the provider's optional fields.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .enums import FlightStatus


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a provider ISO-8601 timestamp into an aware datetime.

    Naive timestamps are taken as UTC. Returns None for missing or
    unparseable values; callers must not fall back to string comparison.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name)
    return value if isinstance(value, dict) else {}


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class FlightRecord(BaseModel):
    """
    One scheduled flight instance as reported by the flight-status provider.

    Records are immutable once built. Two records with the same identity key
    describe the same logical flight.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    flight_number: str = Field(..., min_length=1, description="Carrier code + number (e.g. 'DL123')")
    airline_name: Optional[str] = Field(None, description="Operating airline name")
    airline_code: Optional[str] = Field(None, description="Operating airline IATA code")
    departure_airport: str = Field(..., min_length=3, max_length=3, description="Departure IATA code")
    arrival_airport: str = Field(..., min_length=3, max_length=3, description="Arrival IATA code")
    scheduled_departure: Optional[str] = Field(None, description="Scheduled departure (provider format)")
    scheduled_arrival: Optional[str] = Field(None, description="Scheduled arrival (provider format)")
    flight_date: date = Field(..., description="Civil date of the flight")
    status: FlightStatus = Field(default=FlightStatus.UNKNOWN, description="Flight status")
    terminal: Optional[str] = Field(None, description="Departure terminal")
    gate: Optional[str] = Field(None, description="Departure gate")
    aircraft_model: Optional[str] = Field(None, description="Aircraft model or type code")

    @property
    def identity_key(self) -> str:
        """Deduplication key: ``{flight_number}_{flight_date}``."""
        return f"{self.flight_number}_{self.flight_date.isoformat()}"

    @property
    def seat_key(self) -> str:
        """Seat join key: ``{departure}_{arrival}_{flight_date}_{flight_number}``."""
        return (
            f"{self.departure_airport}_{self.arrival_airport}_"
            f"{self.flight_date.isoformat()}_{self.flight_number}"
        )

    @property
    def departure_instant(self) -> Optional[datetime]:
        """Scheduled departure as a comparable instant, if parseable."""
        return parse_timestamp(self.scheduled_departure)

    @classmethod
    def from_provider(
        cls, raw: Dict[str, Any], fallback_date: Optional[date] = None
    ) -> Optional["FlightRecord"]:
        """
        Build a record from one raw aviationstack ``data`` entry.

        Args:
            raw: Provider flight object
            fallback_date: Date to use when the entry carries no ``flight_date``

        Returns:
            FlightRecord, or None when the entry lacks a flight number,
            departure airport or arrival airport (or carries an unusable date)
        """
        if not isinstance(raw, dict):
            return None

        flight = _section(raw, "flight")
        airline = _section(raw, "airline")
        departure = _section(raw, "departure")
        arrival = _section(raw, "arrival")
        aircraft = _section(raw, "aircraft")

        airline_code = _clean(airline.get("iata"))
        flight_number = _clean(flight.get("iata"))
        if flight_number is None and airline_code and _clean(flight.get("number")):
            flight_number = f"{airline_code}{_clean(flight.get('number'))}"

        departure_airport = _clean(departure.get("iata"))
        arrival_airport = _clean(arrival.get("iata"))
        if not flight_number or not departure_airport or not arrival_airport:
            return None

        flight_date: Optional[date] = fallback_date
        raw_date = _clean(raw.get("flight_date"))
        if raw_date:
            try:
                flight_date = date.fromisoformat(raw_date)
            except ValueError:
                return None
        if flight_date is None:
            return None

        try:
            return cls(
                flight_number=flight_number.upper(),
                airline_name=_clean(airline.get("name")),
                airline_code=airline_code.upper() if airline_code else None,
                departure_airport=departure_airport.upper(),
                arrival_airport=arrival_airport.upper(),
                scheduled_departure=_clean(departure.get("scheduled")),
                scheduled_arrival=_clean(arrival.get("scheduled")),
                flight_date=flight_date,
                status=FlightStatus.parse(raw.get("flight_status")),
                terminal=_clean(departure.get("terminal")),
                gate=_clean(departure.get("gate")),
                aircraft_model=_clean(aircraft.get("model")) or _clean(aircraft.get("iata")),
            )
        except ValueError:
            # pydantic ValidationError subclasses ValueError (e.g. a 4-letter code in an IATA slot)
            return None


class EnrichedFlightRecord(FlightRecord):
    """
    Flight record joined with the latest user-reported seat availability.

    Both seat fields are null when nobody has reported a count for the leg.
    """

    seats_available: Optional[int] = Field(None, ge=0, description="Last reported open seats")
    seats_updated_at: Optional[datetime] = Field(None, description="When the seat count was reported")
    preferred_carrier: bool = Field(default=False, description="Operated by a preferred carrier")

    @computed_field  # type: ignore[misc]
    @property
    def flight_key(self) -> str:
        """Key clients send back when reporting seats for this leg."""
        return self.seat_key
