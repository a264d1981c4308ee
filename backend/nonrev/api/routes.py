"""API routes for the Non-Rev planner."""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from ..exceptions import MissingParameter
from ..services.pipeline import FlightSearchPipeline

logger = logging.getLogger(__name__)

api_router = APIRouter()


def _pipeline(request: Request) -> FlightSearchPipeline:
    return request.app.state.pipeline


def _require(**params: Optional[str]) -> None:
    missing = [name for name, value in params.items() if value is None or not value.strip()]
    if missing:
        raise MissingParameter(f"Missing {', '.join(missing)}")


@api_router.get("/search")
async def search_flights(
    request: Request,
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    date: Optional[str] = None,
):
    """Flights for one route and date, enriched with seat counts."""
    _require(origin=origin, destination=destination, date=date)
    result = await _pipeline(request).search(origin, destination, date)
    return result.model_dump(mode="json")


@api_router.get("/flights")
async def departures(
    request: Request,
    origin: Optional[str] = None,
    date: Optional[str] = None,
    city: Optional[str] = None,
):
    """Every departure from one airport on a date, for chaining connections."""
    origin = origin or city
    _require(origin=origin, date=date)
    result = await _pipeline(request).search(origin, None, date)
    return result.model_dump(mode="json")


@api_router.get("/flight")
async def flight_detail(request: Request, flight: Optional[str] = None, date: Optional[str] = None):
    """
    One cached flight by flight number and date.

    This is not a departures listing: clients that want every departure
    from a city with seat counts joined on should call
    ``/api/flights?city=<IATA>&date=<date>``.
    """
    _require(flight=flight, date=date)
    record = await _pipeline(request).get_flight(flight, date)
    if record is None:
        return JSONResponse(
            status_code=404,
            content={"error": "NotFound", "details": f"No cached data for {flight} on {date}"},
        )
    return {"flight": record.model_dump(mode="json")}


@api_router.post("/seats")
async def record_seats(request: Request, payload: Dict[str, Any] = Body(...)):
    """Record the seats a traveller saw available on a leg."""
    flight_key = payload.get("flightKey", payload.get("flight_key"))
    seats_available = payload.get("seatsAvailable", payload.get("seats_available"))
    await _pipeline(request).record_seats(flight_key, seats_available)
    return {"success": True}


@api_router.post("/setup-db")
async def setup_db(request: Request):
    """Create the planner tables if they do not exist."""
    await asyncio.to_thread(request.app.state.db_config.create_tables)
    return {"message": "Database setup complete"}


@api_router.get("/check-db")
async def check_db(request: Request):
    """List the tables present in the database."""
    tables = await asyncio.to_thread(request.app.state.db_config.list_tables)
    return {"tables": tables}
