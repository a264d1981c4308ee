"""
Tests for the HTTP API.

Requests go through FastAPI's TestClient against an app wired to the
in-memory stores and a scripted upstream.
"""

import pytest
from fastapi.testclient import TestClient

from nonrev.api.app import create_app
from nonrev.exceptions import UpstreamError, UpstreamTimeout
from nonrev.utils.config import PlannerConfig

from conftest import FakeUpstream, make_raw_flight


@pytest.fixture
def upstream():
    return FakeUpstream(pages=[[
        make_raw_flight("DL100", departure="2025-04-15T09:00:00+00:00"),
        make_raw_flight("UA200", departure="2025-04-15T07:00:00+00:00",
                        airline="United Airlines", airline_iata="UA"),
    ]])


@pytest.fixture
def client(make_pipeline, upstream, db_config):
    app = create_app(pipeline=make_pipeline(upstream), db_config=db_config, config=PlannerConfig())
    return TestClient(app)


class TestSearchEndpoint:
    """Test GET /api/search."""

    def test_search(self, client, seat_store):
        seat_store.upsert("JFK_LAX_2025-04-15_UA200", 4, 0)

        response = client.get("/api/search", params={"origin": "JFK", "destination": "LAX", "date": "2025-04-15"})

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "api"
        assert [f["flight_number"] for f in data["flights"]] == ["UA200", "DL100"]
        assert data["flights"][0]["seats_available"] == 4
        assert data["flights"][0]["flight_key"] == "JFK_LAX_2025-04-15_UA200"
        assert data["flights"][1]["seats_available"] is None
        assert data["flights"][1]["seats_updated_at"] is None

    def test_second_search_served_from_cache(self, client, upstream):
        params = {"origin": "JFK", "destination": "LAX", "date": "2025-04-15"}
        client.get("/api/search", params=params)

        response = client.get("/api/search", params=params)
        assert response.json()["source"] == "cache"
        assert len(upstream.calls) == 1

    @pytest.mark.parametrize("params", [
        {"destination": "LAX", "date": "2025-04-15"},
        {"origin": "JFK", "date": "2025-04-15"},
        {"origin": "JFK", "destination": "LAX"},
        {"origin": "", "destination": "LAX", "date": "2025-04-15"},
    ])
    def test_missing_parameter(self, client, upstream, params):
        response = client.get("/api/search", params=params)

        assert response.status_code == 400
        assert response.json()["error"] == "MissingParameter"
        assert upstream.calls == []

    def test_invalid_parameter(self, client):
        response = client.get("/api/search", params={"origin": "JFK", "destination": "LAX", "date": "tomorrow"})
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidInput"

    @pytest.mark.parametrize("error,code", [
        (UpstreamError("aviationstack 500: boom", status_code=500), "UpstreamError"),
        (UpstreamTimeout("aviationstack did not respond within 10s"), "UpstreamTimeout"),
    ])
    def test_upstream_failure(self, client, upstream, error, code):
        upstream.error = error

        response = client.get("/api/search", params={"origin": "JFK", "destination": "LAX", "date": "2025-04-15"})

        assert response.status_code == 500
        assert response.json() == {"error": code, "details": error.details}

    def test_unexpected_failure(self, make_pipeline, db_config):
        upstream = FakeUpstream(error=RuntimeError("kaboom"))
        app = create_app(pipeline=make_pipeline(upstream), db_config=db_config, config=PlannerConfig())

        response = TestClient(app, raise_server_exceptions=False).get(
            "/api/search", params={"origin": "JFK", "destination": "LAX", "date": "2025-04-15"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "InternalError", "details": "Unexpected server error"}


class TestDeparturesEndpoint:
    """Test GET /api/flights."""

    def test_departures_by_origin(self, client, upstream):
        response = client.get("/api/flights", params={"origin": "JFK", "date": "2025-04-15"})

        assert response.status_code == 200
        assert len(response.json()["flights"]) == 2
        assert upstream.calls[0][1] is None

    def test_city_alias(self, client):
        response = client.get("/api/flights", params={"city": "JFK", "date": "2025-04-15"})
        assert response.status_code == 200

    def test_city_listing_joins_seats(self, client, seat_store):
        seat_store.upsert("JFK_LAX_2025-04-15_DL100", 5, 0)

        response = client.get("/api/flights", params={"city": "JFK", "date": "2025-04-15"})

        seats = {f["flight_number"]: f["seats_available"] for f in response.json()["flights"]}
        assert seats == {"UA200": None, "DL100": 5}

    def test_missing_origin(self, client):
        response = client.get("/api/flights", params={"date": "2025-04-15"})
        assert response.status_code == 400
        assert response.json()["error"] == "MissingParameter"


class TestFlightEndpoint:
    """Test GET /api/flight."""

    def test_cached_flight(self, client):
        client.get("/api/search", params={"origin": "JFK", "destination": "LAX", "date": "2025-04-15"})

        response = client.get("/api/flight", params={"flight": "DL100", "date": "2025-04-15"})
        assert response.status_code == 200
        assert response.json()["flight"]["flight_number"] == "DL100"

    def test_not_cached(self, client):
        response = client.get("/api/flight", params={"flight": "DL100", "date": "2025-04-15"})
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"


class TestSeatsEndpoint:
    """Test POST /api/seats."""

    def test_record_seats(self, client, seat_store):
        response = client.post("/api/seats", json={"flightKey": "JFK_LAX_2025-04-15_DL100", "seatsAvailable": 3})

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert seat_store.get("JFK_LAX_2025-04-15_DL100").seats_available == 3

    def test_snake_case_fields(self, client, seat_store):
        response = client.post("/api/seats", json={"flight_key": "JFK_LAX_2025-04-15_DL100", "seats_available": 0})
        assert response.status_code == 200
        assert seat_store.get("JFK_LAX_2025-04-15_DL100").seats_available == 0

    def test_whole_number_float_count(self, client, seat_store):
        response = client.post("/api/seats", json={"flightKey": "JFK_LAX_2025-04-15_DL100", "seatsAvailable": 4.0})
        assert response.status_code == 200
        assert seat_store.get("JFK_LAX_2025-04-15_DL100").seats_available == 4

    def test_seats_show_up_in_search(self, client):
        client.post("/api/seats", json={"flightKey": "JFK_LAX_2025-04-15_DL100", "seatsAvailable": 6})

        data = client.get(
            "/api/search", params={"origin": "JFK", "destination": "LAX", "date": "2025-04-15"}
        ).json()
        seats = {f["flight_number"]: f["seats_available"] for f in data["flights"]}
        assert seats == {"UA200": None, "DL100": 6}

    @pytest.mark.parametrize("body", [
        {"flightKey": "JFK_LAX_2025-04-15_DL100", "seatsAvailable": -1},
        {"flightKey": "JFK_LAX_2025-04-15_DL100", "seatsAvailable": "4"},
        {"flightKey": "JFK_LAX_2025-04-15_DL100", "seatsAvailable": 4.5},
        {"flightKey": "JFK_LAX_2025-04-15_DL100"},
        {"flightKey": "", "seatsAvailable": 2},
        {"seatsAvailable": 2},
    ])
    def test_invalid_input(self, client, seat_store, body):
        response = client.post("/api/seats", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidInput"
        assert seat_store.get("JFK_LAX_2025-04-15_DL100") is None

    def test_non_object_body(self, client):
        response = client.post("/api/seats", json=[1, 2, 3])
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidInput"


class TestDatabaseEndpoints:
    """Test the setup and inspection endpoints."""

    def test_setup_and_check(self, client):
        assert client.post("/api/setup-db").json() == {"message": "Database setup complete"}

        response = client.get("/api/check-db")
        assert response.status_code == 200
        assert response.json() == {"tables": ["flight_seats", "flights"]}
