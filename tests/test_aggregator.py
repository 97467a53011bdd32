import math

import pytest

from src.fleetplan.config import Settings
from src.fleetplan.models.domain import Coordinates, FuelEstimate, TripLoad, VehicleInfo
from src.fleetplan.services.routing.oracle import PairwiseDistanceOracle
from src.fleetplan.services.workload.aggregator import aggregate_workload, classify_load, load_percentage

DEPOT = Coordinates(0.0, 0.0)


class PlanarOracle(PairwiseDistanceOracle):
    def distance_km(self, a, b):
        return math.hypot(a.latitude - b.latitude, a.longitude - b.longitude) * 111.0


class FakeFuel:
    def __init__(self, failing_vehicle: str | None = None):
        self.failing_vehicle = failing_vehicle
        self.calls: list[tuple[float, str]] = []

    def estimate(self, distance_km, vehicle_id, unit_type):
        if vehicle_id == self.failing_vehicle:
            raise RuntimeError("fuel lookup unavailable")
        self.calls.append((distance_km, vehicle_id))
        return FuelEstimate(
            liters_estimate=distance_km / 4.0,
            cost_estimate=round(distance_km / 4.0 * 24.5, 2),
            efficiency_km_l=4.0,
            is_real_efficiency=False,
        )


def _vehicle(vehicle_id: str) -> VehicleInfo:
    return VehicleInfo(id=vehicle_id, label=f"Unit {vehicle_id}", brand="Kenworth", unit_type="torton")


def _trip(trip_id: str, vehicle_id: str, distance_km: float) -> TripLoad:
    return TripLoad(id=trip_id, folio=f"F-{trip_id}", vehicle_id=vehicle_id, distance_km=distance_km)


def _aggregate(vehicles, trips, fuel=None, settings=None):
    return aggregate_workload(
        vehicles,
        trips,
        depot=DEPOT,
        start_time="06:00",
        oracle=PlanarOracle(),
        fuel_estimator=fuel or FakeFuel(),
        toll_estimator=lambda km, tariff: round(km * 0.6 * 2.5),
        settings=settings or Settings(),
    )


@pytest.mark.parametrize(
    ("percentage", "expected"),
    [(40, "underloaded"), (49, "underloaded"), (50, "normal"), (75, "normal"), (100, "normal"), (101, "overloaded"), (120, "overloaded")],
)
def test_classify_load_thresholds(percentage, expected):
    assert classify_load(percentage, Settings()) == expected


def test_load_percentage_rounds_half_up():
    assert load_percentage(1, 8) == 13
    assert load_percentage(0, 600) == 0


def test_aggregate_sorts_heaviest_first_and_classifies():
    vehicles = [_vehicle("LOW"), _vehicle("HIGH"), _vehicle("MID")]
    trips = [
        _trip("t1", "LOW", 240.0),
        _trip("t2", "HIGH", 400.0),
        _trip("t3", "HIGH", 320.0),
        _trip("t4", "MID", 450.0),
    ]

    loads = _aggregate(vehicles, trips)

    assert [load.vehicle_id for load in loads] == ["HIGH", "MID", "LOW"]
    assert [load.status for load in loads] == ["overloaded", "normal", "underloaded"]
    assert [load.load_percentage for load in loads] == [120, 75, 40]
    high = loads[0]
    assert high.trip_count == 2
    assert high.total_km == 720.0
    assert high.estimated_hours == 13.0
    assert high.toll_cost_estimate == 1080
    assert high.fuel_cost_estimate == pytest.approx(4410.0)
    assert high.critical_path is not None
    assert len(high.critical_path.sequence) == 2


def test_equal_loads_keep_input_order():
    vehicles = [_vehicle("A"), _vehicle("B"), _vehicle("C")]
    trips = [_trip("t1", "A", 300.0), _trip("t2", "B", 300.0), _trip("t3", "C", 300.0)]

    loads = _aggregate(vehicles, trips)

    assert [load.vehicle_id for load in loads] == ["A", "B", "C"]


def test_vehicle_without_trips_skips_costs_and_critical_path():
    fuel = FakeFuel()

    loads = _aggregate([_vehicle("IDLE"), _vehicle("BUSY")], [_trip("t1", "BUSY", 300.0)], fuel=fuel)

    idle = next(load for load in loads if load.vehicle_id == "IDLE")
    assert idle.total_km == 0
    assert idle.trip_count == 0
    assert idle.status == "underloaded"
    assert idle.critical_path is None
    assert idle.fuel_cost_estimate == 0.0
    assert idle.toll_cost_estimate == 0.0
    assert [vehicle_id for _, vehicle_id in fuel.calls] == ["BUSY"]


def test_trips_for_other_vehicles_are_ignored():
    loads = _aggregate([_vehicle("A")], [_trip("t1", "A", 120.0), _trip("t2", "ZZ", 500.0)])

    assert len(loads) == 1
    assert loads[0].total_km == 120.0


def test_collaborator_failure_is_isolated_per_vehicle():
    vehicles = [_vehicle("OK"), _vehicle("BAD")]
    trips = [_trip("t1", "OK", 300.0), _trip("t2", "BAD", 450.0)]

    loads = _aggregate(vehicles, trips, fuel=FakeFuel(failing_vehicle="BAD"))

    bad = next(load for load in loads if load.vehicle_id == "BAD")
    ok = next(load for load in loads if load.vehicle_id == "OK")
    assert bad.error == "fuel lookup unavailable"
    assert bad.total_km == 450.0
    assert bad.load_percentage == 75
    assert bad.fuel_cost_estimate == 0.0
    assert bad.critical_path is None
    assert ok.error is None
    assert ok.critical_path is not None


def test_collaborator_failure_propagates_when_isolation_disabled():
    vehicles = [_vehicle("OK"), _vehicle("BAD")]
    trips = [_trip("t1", "OK", 300.0), _trip("t2", "BAD", 450.0)]

    with pytest.raises(RuntimeError):
        _aggregate(
            vehicles,
            trips,
            fuel=FakeFuel(failing_vehicle="BAD"),
            settings=Settings(isolate_vehicle_failures=False),
        )


def test_aggregate_empty_fleet():
    assert _aggregate([], [_trip("t1", "A", 10.0)]) == []
