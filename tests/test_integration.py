import csv
import io

import pytest
from fastapi.testclient import TestClient

from rotapro.api.routes import routes as routes_module
from rotapro.main import create_app
from rotapro.services.routing.service import MISSING_INPUT_MESSAGE


@pytest.fixture
def client(monkeypatch, optimizer) -> TestClient:
    monkeypatch.setattr(routes_module, "get_optimizer", lambda: optimizer)
    return TestClient(create_app())


def test_health_endpoint(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_root_endpoint_lists_service(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_optimize_returns_round_trip(client):
    payload = {
        "stops": ["Rua B, 200", "Rua C, 300", {"id": "client-5", "address": "Rua E, 500"}],
        "start": "Rua A, 100",
        "travel_mode": "driving",
        "departure_time": "2024-03-04T08:00:00+00:00",
    }

    response = client.post("/api/routes/optimize", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["round_trip"] is True
    assert len(body["steps"]) == 4
    assert body["steps"][-1]["address"] == "Rua A, 100"
    assert "client-5" in {step["stop_id"] for step in body["steps"]}
    assert body["total_distance_m"] == 6000
    assert body["total_distance"] == "6.0 km"
    assert body["origin"]["address"] == "Rua A, 100"
    assert body["steps"][0]["instructions"][0]["icon"] == "start"


def test_optimize_rejects_missing_stops(client):
    response = client.post("/api/routes/optimize", json={"stops": [], "start": "Rua A, 100"})

    assert response.status_code == 400
    assert response.json()["detail"] == {"stage": "validation", "message": MISSING_INPUT_MESSAGE}


def test_optimize_reports_geocoding_failure(client):
    response = client.post("/api/routes/optimize", json={"stops": ["Rua Z, 999"], "start": "Rua A, 100"})

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["stage"] == "geocoding"
    assert "Rua Z, 999" in detail["message"]


def test_optimize_reports_leg_failure_as_bad_gateway(client, dummy_osrm):
    dummy_osrm.fail_routes = {((0.0, 0.01), (0.0, 0.0))}

    response = client.post("/api/routes/optimize", json={"stops": ["Rua B, 200"], "start": "Rua A, 100"})

    assert response.status_code == 502
    assert response.json()["detail"]["stage"] == "itinerary"


def test_optimize_with_session_id(client):
    payload = {"stops": ["Rua B, 200"], "start": "Rua A, 100", "session_id": "device-1"}

    response = client.post("/api/routes/optimize", json=payload)

    assert response.status_code == 200
    assert not routes_module.registry.in_flight("device-1")


def test_optimize_csv_export(client):
    payload = {"stops": ["Rua B, 200", "Rua C, 300"], "start": "Rua A, 100", "end": "Rua D, 400"}

    response = client.post("/api/routes/optimize.csv", json=payload)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert [row["address"] for row in rows] == ["Rua B, 200", "Rua C, 300", "Rua D, 400"]


def test_osrm_health_endpoint(client, monkeypatch):
    from unittest.mock import AsyncMock

    from rotapro.services.routing import osrm_client

    monkeypatch.setattr(osrm_client.OSRMClient, "check_health", AsyncMock(return_value=True))

    response = client.get("/api/health/osrm")

    assert response.status_code == 200
    assert response.json() == {"service": "osrm", "healthy": True}


def test_optimize_rejects_stop_objects_without_addresses(client):
    payload = {"stops": [{"id": "s1", "address": ""}, {"id": "s2", "address": "   "}], "start": "Rua A, 100"}

    response = client.post("/api/routes/optimize", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"]["message"] == MISSING_INPUT_MESSAGE
