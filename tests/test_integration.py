import math

import pytest
from fastapi.testclient import TestClient

from src.fleetplan.config import settings
from src.fleetplan.main import create_app
from src.fleetplan.services.costs import FuelCostEstimator
from src.fleetplan.services.routing.oracle import PairwiseDistanceOracle
from src.fleetplan.services.workload import service as workload_service

DEPOT = {"latitude": 0.0, "longitude": 0.0}


class PlanarOracle(PairwiseDistanceOracle):
    def distance_km(self, a, b):
        return math.hypot(a.latitude - b.latitude, a.longitude - b.longitude) * 111.0


def _trip(trip_id: str, vehicle_id: str, distance_km: float, **extra) -> dict:
    return {"id": trip_id, "folio": f"F-{trip_id}", "vehicle_id": vehicle_id, "distance_km": distance_km, **extra}


def _vehicle(vehicle_id: str) -> dict:
    return {"id": vehicle_id, "label": f"Unit {vehicle_id}", "brand": "Kenworth", "unit_type": "torton"}


@pytest.fixture
def api_client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setattr(workload_service, "get_distance_oracle", lambda settings=None: PlanarOracle())
    monkeypatch.setattr(
        workload_service,
        "FuelCostEstimator",
        lambda settings=None: FuelCostEstimator(efficiency_lookup=lambda vehicle_id: None, settings=settings),
    )
    return TestClient(create_app())


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_osrm_health_reports_unconfigured(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "osrm_base_url", None)

    response = api_client.get("/api/health/osrm")

    assert response.status_code == 200
    assert response.json() == {"service": "osrm", "configured": False, "healthy": False}


def test_analyze_workload_endpoint(api_client: TestClient):
    payload = {
        "vehicles": [_vehicle("V1"), _vehicle("V2"), _vehicle("V3")],
        "trips": [
            _trip("t1", "V1", 400.0, window_start="06:00", window_end="07:00"),
            _trip("t2", "V1", 320.0),
            _trip("t3", "V2", 120.0),
        ],
        "depot": DEPOT,
        "start_time": "06:00",
    }

    response = api_client.post("/api/workload/analyze", json=payload)

    assert response.status_code == 200
    data = response.json()

    assert [load["vehicle_id"] for load in data["loads"]] == ["V1", "V2", "V3"]
    v1 = data["loads"][0]
    assert v1["status"] == "overloaded"
    assert v1["load_percentage"] == 120
    assert v1["toll_cost_estimate"] == 1080
    assert v1["critical_path"]["window_compliance"] == [False, True]
    assert data["loads"][2]["critical_path"] is None

    assert [(alert["type"], alert["vehicle_id"]) for alert in data["alerts"]] == [
        ("overload", "V1"),
        ("window_conflict", "V1"),
        ("underload", "V2"),
    ]

    suggestions = data["suggestions"]
    assert [s["trip_id"] for s in suggestions] == ["t1", "t2"]
    assert all(s["to_vehicle_id"] == "V2" for s in suggestions)
    assert all(s["estimated_km_saved"] >= 0 for s in suggestions)

    metadata = data["metadata"]
    assert metadata["vehicles"] == 3
    assert metadata["trips"] == 3
    assert (metadata["overloaded"], metadata["normal"], metadata["underloaded"]) == (1, 0, 2)
    assert metadata["total_km"] == 840.0
    assert metadata["failed"] == 0


def test_analyze_rejects_duplicate_vehicle_ids(api_client: TestClient):
    payload = {"vehicles": [_vehicle("V1"), _vehicle("V1")], "trips": []}

    response = api_client.post("/api/workload/analyze", json=payload)

    assert response.status_code == 400
    assert "V1" in response.json()["detail"]


def test_analyze_rejects_unknown_toll_tariff_class(api_client: TestClient):
    vehicle = {**_vehicle("V1"), "toll_tariff_class": "camion_9ejes"}
    payload = {"vehicles": [vehicle], "trips": [_trip("t1", "V1", 100.0)]}

    response = api_client.post("/api/workload/analyze", json=payload)

    assert response.status_code == 422


def test_analyze_uses_vehicle_toll_tariff_class(api_client: TestClient):
    vehicle = {**_vehicle("V1"), "toll_tariff_class": "camion_3ejes"}
    payload = {"vehicles": [vehicle], "trips": [_trip("t1", "V1", 100.0)], "depot": DEPOT}

    response = api_client.post("/api/workload/analyze", json=payload)

    assert response.status_code == 200
    load = response.json()["loads"][0]
    assert load["error"] is None
    assert load["toll_cost_estimate"] == 210


def test_analyze_rejects_vehicle_over_stop_limit(api_client: TestClient):
    payload = {
        "vehicles": [_vehicle("V1"), _vehicle("V2")],
        "trips": [_trip(f"T{i}", "V1", 10.0 + i) for i in range(26)] + [_trip("X", "V2", 50.0)],
        "depot": DEPOT,
    }

    response = api_client.post("/api/workload/analyze", json=payload)

    assert response.status_code == 400
    assert "V1" in response.json()["detail"]


def test_analyze_rejects_malformed_window(api_client: TestClient):
    payload = {"vehicles": [_vehicle("V1")], "trips": [_trip("t1", "V1", 100.0, window_start="8am")]}

    response = api_client.post("/api/workload/analyze", json=payload)

    assert response.status_code == 422


def test_sequence_endpoint(api_client: TestClient):
    payload = {
        "trips": [
            _trip("A", "V1", 111.0, destination_coordinates={"latitude": 1.0, "longitude": 0.0}),
            _trip("C", "V1", 111.0, destination_coordinates={"latitude": 0.0, "longitude": 1.0}),
            _trip("B", "V1", 157.0, destination_coordinates={"latitude": 1.0, "longitude": 1.0}),
        ],
        "depot": DEPOT,
    }

    response = api_client.post("/api/workload/sequence", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["ordered_trip_ids"] in (["A", "B", "C"], ["C", "B", "A"])
    assert data["optimized_km"] == pytest.approx(444.0)
    assert data["km_saved"] > 0
    assert data["all_windows_satisfied"] is True


def test_sequence_rejects_mixed_vehicles(api_client: TestClient):
    payload = {"trips": [_trip("A", "V1", 10.0), _trip("B", "V2", 10.0)]}

    response = api_client.post("/api/workload/sequence", json=payload)

    assert response.status_code == 400


def test_sequence_rejects_too_many_stops(api_client: TestClient):
    payload = {"trips": [_trip(f"T{i}", "V1", 10.0 + i) for i in range(26)], "depot": DEPOT}

    response = api_client.post("/api/workload/sequence", json=payload)

    assert response.status_code == 400


def test_sequence_reports_unexpected_failures(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    class BrokenOracle(PairwiseDistanceOracle):
        def distance_km(self, a, b):
            raise ConnectionError("OSRM unreachable")

    monkeypatch.setattr(workload_service, "get_distance_oracle", lambda settings=None: BrokenOracle())
    payload = {"trips": [_trip("A", "V1", 10.0), _trip("B", "V1", 20.0)], "depot": DEPOT}

    response = api_client.post("/api/workload/sequence", json=payload)

    assert response.status_code == 500
    assert "OSRM unreachable" in response.json()["detail"]


def test_critical_path_endpoint(api_client: TestClient):
    payload = {"trips": [_trip("A", "V1", 100.0)], "depot": DEPOT, "start_time": "06:00"}

    response = api_client.post("/api/workload/critical-path", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["arrival_times"] == ["07:40"]
    assert data["window_compliance"] == [True]
    assert data["end_time"] == "09:50"
    assert data["sequence"][0]["id"] == "A"
    assert data["geometry"] is None
