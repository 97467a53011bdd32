"""Workload orchestration service."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict
from typing import Sequence

from ...config import settings
from ...models.domain import Coordinates, TripLoad, VehicleLoad
from ...schemas.workload import (
    CoordinatesModel,
    CriticalPathModel,
    CriticalPathRequest,
    LoadAlertModel,
    RedistributionSuggestionModel,
    SequenceRequest,
    SequenceResponse,
    VehicleLoadModel,
    WorkloadAnalysisRequest,
    WorkloadAnalysisResponse,
)
from ..costs import FuelCostEstimator, estimate_toll_cost
from ..routing.oracle import get_directions_service, get_distance_oracle
from .aggregator import aggregate_workload
from .alerts import generate_alerts
from .critical_path import compute_critical_path
from .redistribution import suggest_redistribution
from .sequence import optimize_sequence

logger = logging.getLogger(__name__)


def _resolve_depot(depot: CoordinatesModel | None) -> Coordinates:
    if depot is not None:
        return depot.to_domain()
    return Coordinates(settings.depot_latitude, settings.depot_longitude)


def _ensure_unique_ids(ids: Sequence[str], kind: str) -> None:
    duplicates = sorted(item for item, count in Counter(ids).items() if count > 1)
    if duplicates:
        raise ValueError(f"Duplicate {kind} ids: {', '.join(duplicates)}")


def _ensure_stop_limits(trips: Sequence[TripLoad]) -> None:
    per_vehicle = Counter(trip.vehicle_id for trip in trips)
    crowded = sorted(vid for vid, count in per_vehicle.items() if count > settings.max_stops_per_vehicle)
    if crowded:
        raise ValueError(
            f"Vehicles exceed the limit of {settings.max_stops_per_vehicle} stops: {', '.join(crowded)}"
        )


def _build_metadata(loads: Sequence[VehicleLoad], trip_count: int, start_time: str, depot: Coordinates) -> dict:
    status_counts = Counter(load.status for load in loads)
    return {
        "vehicles": len(loads),
        "trips": trip_count,
        "overloaded": status_counts.get("overloaded", 0),
        "normal": status_counts.get("normal", 0),
        "underloaded": status_counts.get("underloaded", 0),
        "failed": sum(1 for load in loads if load.error),
        "total_km": round(sum(load.total_km for load in loads), 1),
        "fuel_cost_total": round(sum(load.fuel_cost_estimate for load in loads), 2),
        "toll_cost_total": round(sum(load.toll_cost_estimate for load in loads), 2),
        "target_km_per_day": settings.target_km_per_day,
        "start_time": start_time,
        "depot": {"latitude": depot.latitude, "longitude": depot.longitude},
        "distance_provider": settings.distance_provider,
    }


def analyze_workload(payload: WorkloadAnalysisRequest) -> WorkloadAnalysisResponse:
    _ensure_unique_ids([vehicle.id for vehicle in payload.vehicles], "vehicle")
    _ensure_unique_ids([trip.id for trip in payload.trips], "trip")

    depot = _resolve_depot(payload.depot)
    start_time = payload.start_time or settings.default_start_time
    trips = [trip.to_domain() for trip in payload.trips]
    _ensure_stop_limits(trips)

    loads = aggregate_workload(
        [vehicle.to_domain() for vehicle in payload.vehicles],
        trips,
        depot=depot,
        start_time=start_time,
        oracle=get_distance_oracle(settings),
        fuel_estimator=FuelCostEstimator(settings=settings),
        toll_estimator=lambda km, tariff: estimate_toll_cost(km, tariff, settings=settings),
        settings=settings,
    )
    alerts = generate_alerts(loads, settings=settings)
    suggestions = suggest_redistribution(loads, settings=settings)

    metadata = _build_metadata(loads, len(trips), start_time, depot)
    logger.info(
        f"Workload analysis: {metadata['vehicles']} vehicles, {metadata['trips']} trips, "
        f"{len(alerts)} alerts, {len(suggestions)} suggestions"
    )

    return WorkloadAnalysisResponse(
        loads=[VehicleLoadModel(**asdict(load)) for load in loads],
        alerts=[LoadAlertModel(**asdict(alert)) for alert in alerts],
        suggestions=[RedistributionSuggestionModel(**asdict(s)) for s in suggestions],
        metadata=metadata,
    )


def _single_vehicle_trips(trips: Sequence[TripLoad]) -> None:
    vehicle_ids = {trip.vehicle_id for trip in trips}
    if len(vehicle_ids) > 1:
        raise ValueError(
            f"Trips must belong to a single vehicle, got: {', '.join(sorted(vehicle_ids))}"
        )


def optimize_vehicle_sequence(payload: SequenceRequest) -> SequenceResponse:
    trips = [trip.to_domain() for trip in payload.trips]
    _single_vehicle_trips(trips)

    result = optimize_sequence(
        trips,
        _resolve_depot(payload.depot),
        payload.start_time or settings.default_start_time,
        oracle=get_distance_oracle(settings),
        settings=settings,
    )
    return SequenceResponse(
        **asdict(result),
        ordered_trip_ids=[trips[i].id for i in result.order],
    )


def build_critical_path(payload: CriticalPathRequest) -> CriticalPathModel:
    trips = [trip.to_domain() for trip in payload.trips]
    _single_vehicle_trips(trips)

    directions = get_directions_service(settings) if payload.include_geometry else None
    if payload.include_geometry and directions is None:
        logger.info("Geometry requested but no directions service is configured")

    path = compute_critical_path(
        trips,
        _resolve_depot(payload.depot),
        payload.start_time or settings.default_start_time,
        oracle=get_distance_oracle(settings),
        settings=settings,
        directions=directions,
    )
    return CriticalPathModel(**asdict(path))
