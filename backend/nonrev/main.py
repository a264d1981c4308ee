"""
Command-line entry point for the Non-Rev planner.
"""

import asyncio
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from nonrev.cache.client import ValkeyClient
from nonrev.cache.config import ValkeyConfig
from nonrev.database.config import get_database_config, initialize_database
from nonrev.exceptions import NonRevError
from nonrev.models.cache import SearchResult
from nonrev.services.factory import build_cache_store, build_pipeline
from nonrev.services.pipeline import now_ms
from nonrev.utils.config import configure_logging, get_config

app = typer.Typer(help="Non-Rev flight planner: cached flight search with seat reports")
console = Console()


def _valkey_client_for(config) -> Optional[ValkeyClient]:
    return ValkeyClient(ValkeyConfig.from_env()) if config.cache_backend == "valkey" else None


def print_flights(result: SearchResult) -> None:
    """Render a search result as a rich table."""
    table = Table(title=f"{len(result.flights)} flight(s) from {result.source.value}", box=box.ROUNDED)
    table.add_column("Flight", style="cyan")
    table.add_column("Airline")
    table.add_column("Route")
    table.add_column("Departs")
    table.add_column("Status")
    table.add_column("Seats", justify="right")
    table.add_column("Seat key", style="dim")

    for flight in result.flights:
        seats = "-" if flight.seats_available is None else str(flight.seats_available)
        airline = flight.airline_name or ""
        if flight.preferred_carrier:
            airline = f"[bold green]{airline}[/bold green]"
        table.add_row(
            flight.flight_number,
            airline,
            f"{flight.departure_airport} → {flight.arrival_airport}",
            flight.scheduled_departure or "",
            flight.status.value,
            seats,
            flight.flight_key,
        )

    console.print(table)


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, help="Override LOG_LEVEL")):
    """Configure logging for every command."""
    configure_logging(log_level or get_config().log_level)


@app.command("init-db")
def init_db():
    """Create the flights and flight_seats tables."""
    db_config = initialize_database(create_tables=True)
    console.print(f"[green]✓[/green] Database ready: {db_config.get_connection_info()['database_url']}")


@app.command("check-db")
def check_db():
    """List the tables in the configured database."""
    tables = get_database_config().list_tables()
    console.print(f"Tables: {', '.join(tables) if tables else '(none)'}")


@app.command()
def search(
    origin: str = typer.Argument(..., help="Departure IATA code"),
    destination: Optional[str] = typer.Argument(None, help="Arrival IATA code (omit for all departures)"),
    date: str = typer.Option(..., "--date", "-d", help="Flight date (YYYY-MM-DD)"),
):
    """Search flights and show them with reported seats."""
    config = get_config()

    async def run() -> SearchResult:
        db_config = initialize_database(create_tables=True)
        valkey_client = _valkey_client_for(config)
        try:
            pipeline = await build_pipeline(config, db_config, valkey_client)
            return await pipeline.search(origin, destination, date)
        finally:
            if valkey_client is not None:
                await valkey_client.disconnect()

    try:
        print_flights(asyncio.run(run()))
    except NonRevError as e:
        console.print(f"[red]✗ {e.error_code}:[/red] {e.details}")
        raise typer.Exit(code=1)


@app.command()
def seats(
    flight_key: str = typer.Argument(..., help="Seat key, e.g. JFK_LAX_2025-04-15_DL123"),
    seats_available: int = typer.Argument(..., help="Open seats seen"),
):
    """Record a seat count for a flight leg."""
    config = get_config()

    async def run() -> None:
        db_config = initialize_database(create_tables=True)
        valkey_client = _valkey_client_for(config)
        try:
            pipeline = await build_pipeline(config, db_config, valkey_client)
            await pipeline.record_seats(flight_key, seats_available)
        finally:
            if valkey_client is not None:
                await valkey_client.disconnect()

    try:
        asyncio.run(run())
    except NonRevError as e:
        console.print(f"[red]✗ {e.error_code}:[/red] {e.details}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Recorded {seats_available} seat(s) for {flight_key}")


@app.command("purge-cache")
def purge_cache(
    older_than_hours: Optional[float] = typer.Option(
        None, help="Delete entries written more than this many hours ago (default: the freshness window)"
    ),
):
    """Delete stale flight cache entries."""
    config = get_config()
    hours = older_than_hours if older_than_hours is not None else config.cache_freshness_hours
    cutoff = now_ms() - int(hours * 60 * 60 * 1000)

    async def run() -> int:
        db_config = initialize_database(create_tables=True)
        valkey_client = _valkey_client_for(config)
        try:
            store = await build_cache_store(config, db_config, valkey_client)
            return await asyncio.to_thread(store.purge_expired, cutoff)
        finally:
            if valkey_client is not None:
                await valkey_client.disconnect()

    try:
        removed = asyncio.run(run())
    except NonRevError as e:
        console.print(f"[red]✗ {e.error_code}:[/red] {e.details}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Removed {removed} cache entr{'y' if removed == 1 else 'ies'} older than {hours:g}h")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn
    from nonrev.api.app import create_app

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    app()
