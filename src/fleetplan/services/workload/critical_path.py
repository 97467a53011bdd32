"""Timed itinerary (critical path) for one vehicle-day."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import Settings, settings as default_settings
from ...models.domain import Coordinates, CriticalPathInfo, TripLoad
from ..routing.oracle import DirectionsService, DistanceOracle, get_distance_oracle
from .sequence import build_distance_matrix, ensure_stop_limit, leg_distances, optimize_sequence
from .timing import minutes_to_time, schedule_stops, time_to_minutes, travel_minutes

logger = logging.getLogger(__name__)


def _empty_path(start_time: str) -> CriticalPathInfo:
    return CriticalPathInfo(
        sequence=[],
        total_km=0.0,
        deadhead_km=0.0,
        total_minutes=0,
        start_time=start_time,
        end_time=start_time,
        arrival_times=[],
        window_compliance=[],
    )


def compute_critical_path(
    trips: Sequence[TripLoad],
    depot: Coordinates,
    start_time: str,
    *,
    oracle: DistanceOracle | None = None,
    settings: Settings | None = None,
    directions: DirectionsService | None = None,
) -> CriticalPathInfo:
    """Sequence ``trips`` and time every stop from ``start_time``.

    One trip is a direct depot -> destination -> depot run; two or more go
    through the sequence optimizer first. ``end_time`` includes the deadhead
    leg back to the depot. Geometry is attached only when a directions service
    is given and every stop has real coordinates.
    """
    settings = settings or default_settings
    start_min = time_to_minutes(start_time)
    if not trips:
        return _empty_path(start_time)

    ensure_stop_limit(trips, settings)
    oracle = oracle or get_distance_oracle(settings)
    matrix = build_distance_matrix(trips, depot, oracle, km_per_degree=settings.km_per_degree)

    if len(trips) == 1:
        order = [0]
    else:
        order = optimize_sequence(trips, depot, start_time, settings=settings, matrix=matrix).order

    sequence = [trips[i] for i in order]
    legs = leg_distances(order, matrix)
    schedule = schedule_stops(
        legs,
        sequence,
        start_min,
        speed_kmh=settings.avg_speed_kmh,
        service_time_min=settings.service_time_min,
    )
    deadhead_km = matrix[order[-1] + 1][0]
    end_min = schedule.finish_min + travel_minutes(deadhead_km, settings.avg_speed_kmh)

    geometry = None
    if directions is not None and all(trip.destination_coordinates is not None for trip in sequence):
        waypoints = [depot, *(trip.destination_coordinates for trip in sequence), depot]
        geometry = directions.route_geometry(waypoints)

    late = [trip.folio for trip, ok in zip(sequence, schedule.compliance) if not ok]
    if late:
        logger.debug(f"Itinerary misses time windows for {', '.join(late)}")

    return CriticalPathInfo(
        sequence=sequence,
        total_km=round(sum(legs), 1),
        deadhead_km=round(deadhead_km, 1),
        total_minutes=end_min - start_min,
        start_time=start_time,
        end_time=minutes_to_time(end_min),
        arrival_times=[minutes_to_time(m) for m in schedule.arrivals],
        window_compliance=schedule.compliance,
        geometry=geometry,
    )
