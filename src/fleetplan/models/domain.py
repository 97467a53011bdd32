"""Domain models for trips, vehicles and computed workload."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

LoadStatus = Literal["underloaded", "normal", "overloaded"]
AlertType = Literal["overload", "underload", "window_conflict"]
AlertSeverity = Literal["warning", "error"]
TollTariffClass = Literal["auto", "camion_2ejes", "camion_3ejes", "camion_multieje"]


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class TripLoad:
    """A trip eligible for workload calculation.

    ``window_start``/``window_end`` are optional "HH:MM" soft delivery windows.
    ``destination_coordinates`` is absent when the destination was never geocoded.
    """

    id: str
    folio: str
    vehicle_id: str
    distance_km: float
    destination_coordinates: Optional[Coordinates] = None
    window_start: Optional[str] = None
    window_end: Optional[str] = None
    client_name: Optional[str] = None
    destination: Optional[str] = None


@dataclass(frozen=True, slots=True)
class VehicleInfo:
    """Represents a tractor unit available for planning."""

    id: str
    label: str
    brand: str
    unit_type: str
    driver_name: Optional[str] = None
    toll_tariff_class: Optional[TollTariffClass] = None


@dataclass(slots=True)
class SequenceResult:
    order: list[int]
    original_km: float
    optimized_km: float
    km_saved: float
    minutes_saved: int
    all_windows_satisfied: bool


@dataclass(slots=True)
class CriticalPathInfo:
    """Fully timed itinerary for one vehicle-day."""

    sequence: list[TripLoad]
    total_km: float
    deadhead_km: float
    total_minutes: int
    start_time: str
    end_time: str
    arrival_times: list[str]
    window_compliance: list[bool]
    geometry: Optional[list[tuple[float, float]]] = None


@dataclass(slots=True)
class VehicleLoad:
    vehicle_id: str
    label: str
    brand: str
    unit_type: str
    driver_name: Optional[str]
    total_km: float
    estimated_hours: float
    fuel_cost_estimate: float
    toll_cost_estimate: float
    trip_count: int
    load_percentage: int
    status: LoadStatus
    trips: list[TripLoad]
    critical_path: Optional[CriticalPathInfo] = None
    error: Optional[str] = None


@dataclass(slots=True)
class LoadAlert:
    type: AlertType
    vehicle_id: str
    label: str
    message: str
    severity: AlertSeverity
    details: dict = field(default_factory=dict)


@dataclass(slots=True)
class RedistributionSuggestion:
    trip_id: str
    trip_folio: str
    from_vehicle_id: str
    from_label: str
    to_vehicle_id: str
    to_label: str
    estimated_km_saved: float
    reason: str


@dataclass(slots=True)
class FuelEstimate:
    liters_estimate: float
    cost_estimate: float
    efficiency_km_l: float
    is_real_efficiency: bool


@dataclass(slots=True)
class VehicleFuelEfficiency:
    """Recorded fuel performance for a vehicle, built from its fill history."""

    vehicle_id: str
    average_km_per_liter: float
    fill_count: int
