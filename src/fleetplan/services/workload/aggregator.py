"""Per-vehicle workload metrics."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from ...config import Settings, settings as default_settings
from ...models.domain import Coordinates, FuelEstimate, LoadStatus, TripLoad, VehicleInfo, VehicleLoad
from ..costs import FuelCostEstimator, estimate_toll_cost
from ..routing.oracle import DirectionsService, DistanceOracle, get_distance_oracle
from .critical_path import compute_critical_path
from .timing import round_half_up

logger = logging.getLogger(__name__)


class FuelEstimator(Protocol):
    def estimate(self, distance_km: float, vehicle_id: str | None, unit_type: str | None) -> FuelEstimate: ...


TollEstimator = Callable[[float, str], float]


@dataclass(slots=True)
class _Collaborators:
    depot: Coordinates
    start_time: str
    oracle: DistanceOracle
    fuel_estimator: FuelEstimator
    toll_estimator: TollEstimator
    directions: DirectionsService | None
    settings: Settings


def load_percentage(total_km: float, target_km: float) -> int:
    return round_half_up(total_km / target_km * 100)


def classify_load(percentage: float, settings: Settings | None = None) -> LoadStatus:
    settings = settings or default_settings
    if percentage < settings.underload_threshold:
        return "underloaded"
    if percentage > settings.overload_threshold:
        return "overloaded"
    return "normal"


def _evaluate_vehicle(vehicle: VehicleInfo, trips: list[TripLoad], ctx: _Collaborators) -> VehicleLoad:
    settings = ctx.settings
    total_km = sum(trip.distance_km for trip in trips)
    hours = total_km / settings.avg_speed_kmh + len(trips) * settings.service_time_min / 60
    percentage = load_percentage(total_km, settings.target_km_per_day)

    load = VehicleLoad(
        vehicle_id=vehicle.id,
        label=vehicle.label,
        brand=vehicle.brand,
        unit_type=vehicle.unit_type,
        driver_name=vehicle.driver_name,
        total_km=total_km,
        estimated_hours=round(hours, 1),
        fuel_cost_estimate=0.0,
        toll_cost_estimate=0.0,
        trip_count=len(trips),
        load_percentage=percentage,
        status=classify_load(percentage, settings),
        trips=trips,
    )

    try:
        fuel_cost = 0.0
        toll_cost = 0.0
        if total_km > 0:
            fuel_cost = ctx.fuel_estimator.estimate(total_km, vehicle.id, vehicle.unit_type).cost_estimate
            tariff_class = vehicle.toll_tariff_class or settings.default_toll_tariff_class
            toll_cost = ctx.toll_estimator(total_km, tariff_class)

        critical_path = None
        if trips:
            critical_path = compute_critical_path(
                trips,
                ctx.depot,
                ctx.start_time,
                oracle=ctx.oracle,
                settings=settings,
                directions=ctx.directions,
            )
    except Exception as e:
        if not settings.isolate_vehicle_failures:
            raise
        logger.error(f"Workload evaluation failed for vehicle {vehicle.id} ({vehicle.label}): {e}")
        load.error = str(e) or type(e).__name__
        return load

    load.fuel_cost_estimate = fuel_cost
    load.toll_cost_estimate = toll_cost
    load.critical_path = critical_path
    return load


def aggregate_workload(
    vehicles: Sequence[VehicleInfo],
    trips: Sequence[TripLoad],
    *,
    depot: Coordinates | None = None,
    start_time: str | None = None,
    oracle: DistanceOracle | None = None,
    fuel_estimator: FuelEstimator | None = None,
    toll_estimator: TollEstimator | None = None,
    directions: DirectionsService | None = None,
    settings: Settings | None = None,
) -> list[VehicleLoad]:
    """Compute one ``VehicleLoad`` per vehicle, heaviest first.

    Vehicles are independent, so they are evaluated concurrently; ties in load
    percentage keep the input order. A collaborator failure marks only the
    affected vehicle unless ``isolate_vehicle_failures`` is disabled.
    """
    settings = settings or default_settings
    if not vehicles:
        return []

    ctx = _Collaborators(
        depot=depot or Coordinates(settings.depot_latitude, settings.depot_longitude),
        start_time=start_time or settings.default_start_time,
        oracle=oracle or get_distance_oracle(settings),
        fuel_estimator=fuel_estimator or FuelCostEstimator(settings=settings),
        toll_estimator=toll_estimator or (lambda km, tariff: estimate_toll_cost(km, tariff, settings=settings)),
        directions=directions,
        settings=settings,
    )

    trips_by_vehicle: dict[str, list[TripLoad]] = {}
    for trip in trips:
        trips_by_vehicle.setdefault(trip.vehicle_id, []).append(trip)
    unassigned = len(trips) - sum(len(trips_by_vehicle.get(v.id, [])) for v in vehicles)
    if unassigned:
        logger.debug(f"{unassigned} trips reference vehicles outside this batch and were ignored")

    workers = min(settings.workload_max_workers, len(vehicles))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_evaluate_vehicle, vehicle, trips_by_vehicle.get(vehicle.id, []), ctx)
            for vehicle in vehicles
        ]
        loads = [future.result() for future in futures]

    failed = sum(1 for load in loads if load.error)
    logger.info(
        f"Aggregated workload for {len(loads)} vehicles and {len(trips)} trips"
        + (f" ({failed} vehicles failed)" if failed else "")
    )
    return sorted(loads, key=lambda load: -load.load_percentage)
