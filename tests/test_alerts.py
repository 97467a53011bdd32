from src.fleetplan.config import Settings
from src.fleetplan.models.domain import CriticalPathInfo, TripLoad, VehicleLoad
from src.fleetplan.services.workload.alerts import generate_alerts


def _trip(trip_id: str, distance_km: float = 100.0) -> TripLoad:
    return TripLoad(id=trip_id, folio=f"F-{trip_id}", vehicle_id="V1", distance_km=distance_km)


def _load(vehicle_id: str, total_km: float, percentage: int, status: str, trips=None, critical_path=None) -> VehicleLoad:
    trips = trips if trips is not None else [_trip(f"{vehicle_id}-1", total_km)]
    return VehicleLoad(
        vehicle_id=vehicle_id,
        label=f"Unit {vehicle_id}",
        brand="Volvo",
        unit_type="torton",
        driver_name=None,
        total_km=total_km,
        estimated_hours=0.0,
        fuel_cost_estimate=0.0,
        toll_cost_estimate=0.0,
        trip_count=len(trips),
        load_percentage=percentage,
        status=status,
        trips=trips,
        critical_path=critical_path,
    )


def test_overloaded_vehicle_gets_exactly_one_overload_alert():
    alerts = generate_alerts([_load("V1", 720.0, 120, "overloaded")], settings=Settings())

    overloads = [alert for alert in alerts if alert.type == "overload"]
    assert len(overloads) == 1
    alert = overloads[0]
    assert alert.severity == "error"
    assert alert.vehicle_id == "V1"
    assert alert.message == "Unit V1 overloaded: 720 km (120%)"
    assert alert.details == {
        "current_km": 720.0,
        "target_km": 600.0,
        "load_percentage": 120,
        "estimated_hours": 0.0,
        "hours_per_day": 10,
    }


def test_normal_vehicle_produces_no_load_alerts():
    alerts = generate_alerts([_load("V1", 450.0, 75, "normal")], settings=Settings())

    assert alerts == []


def test_underloaded_vehicle_with_trips_gets_warning():
    alerts = generate_alerts([_load("V1", 120.0, 20, "underloaded")], settings=Settings())

    assert [(alert.type, alert.severity) for alert in alerts] == [("underload", "warning")]


def test_idle_vehicle_is_not_flagged_underloaded():
    alerts = generate_alerts([_load("V1", 0.0, 0, "underloaded", trips=[])], settings=Settings())

    assert alerts == []


def test_window_conflict_names_late_folios():
    late, on_time = _trip("A", 180.0), _trip("B", 10.0)
    path = CriticalPathInfo(
        sequence=[late, on_time],
        total_km=190.0,
        deadhead_km=10.0,
        total_minutes=300,
        start_time="06:00",
        end_time="11:00",
        arrival_times=["09:00", "11:50"],
        window_compliance=[False, True],
    )

    alerts = generate_alerts(
        [_load("V1", 190.0, 32, "underloaded", trips=[late, on_time], critical_path=path)], settings=Settings()
    )

    conflicts = [alert for alert in alerts if alert.type == "window_conflict"]
    assert len(conflicts) == 1
    assert conflicts[0].details == {"conflicting_folios": ["F-A"]}
    assert conflicts[0].severity == "warning"
    assert {alert.type for alert in alerts} == {"underload", "window_conflict"}


def test_alerts_follow_load_order_with_several_per_vehicle():
    late = _trip("A-late", 180.0)
    path = CriticalPathInfo(
        sequence=[late],
        total_km=180.0,
        deadhead_km=180.0,
        total_minutes=390,
        start_time="06:00",
        end_time="12:30",
        arrival_times=["09:00"],
        window_compliance=[False],
    )
    loads = [
        _load("A", 720.0, 120, "overloaded", trips=[late], critical_path=path),
        _load("C", 660.0, 110, "overloaded"),
        _load("B", 120.0, 20, "underloaded"),
        _load("D", 450.0, 75, "normal"),
    ]

    alerts = generate_alerts(loads, settings=Settings())

    assert [(alert.type, alert.vehicle_id) for alert in alerts] == [
        ("overload", "A"),
        ("window_conflict", "A"),
        ("overload", "C"),
        ("underload", "B"),
    ]
