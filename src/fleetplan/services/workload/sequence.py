"""Visiting-order optimization for one vehicle's trips.

Cheapest insertion seeded by the earliest time window, refined with a bounded
2-opt pass. The matrix is indexed with the depot at 0 and trip ``i`` at
``i + 1``; tours start and end at the depot.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import Settings, settings as default_settings
from ...models.domain import Coordinates, SequenceResult, TripLoad
from ..geospatial import proxy_destination
from ..routing.oracle import DistanceOracle, get_distance_oracle
from .timing import schedule_stops, time_to_minutes, travel_minutes, window_start_priority

logger = logging.getLogger(__name__)

_KM_EPSILON = 1e-9


def ensure_stop_limit(trips: Sequence[TripLoad], settings: Settings) -> None:
    if len(trips) > settings.max_stops_per_vehicle:
        raise ValueError(
            f"{len(trips)} trips exceed the limit of {settings.max_stops_per_vehicle} stops per vehicle"
        )


def stop_points(trips: Sequence[TripLoad], depot: Coordinates, *, km_per_degree: float) -> list[Coordinates]:
    points: list[Coordinates] = []
    proxied: list[str] = []
    for trip in trips:
        if trip.destination_coordinates is not None:
            points.append(trip.destination_coordinates)
        else:
            proxied.append(trip.folio)
            points.append(proxy_destination(depot, trip.distance_km, km_per_degree=km_per_degree))
    if proxied:
        logger.warning(f"No destination coordinates for trips {', '.join(proxied)}; using proxy points")
    return points


def build_distance_matrix(
    trips: Sequence[TripLoad],
    depot: Coordinates,
    oracle: DistanceOracle,
    *,
    km_per_degree: float,
) -> list[list[float]]:
    return oracle.distance_matrix([depot, *stop_points(trips, depot, km_per_degree=km_per_degree)])


def leg_distances(order: Sequence[int], matrix: list[list[float]]) -> list[float]:
    """Distance driven to reach each stop of ``order``, starting at the depot."""
    legs: list[float] = []
    previous = 0
    for index in order:
        legs.append(matrix[previous][index + 1])
        previous = index + 1
    return legs


def tour_km(order: Sequence[int], matrix: list[list[float]]) -> float:
    if not order:
        return 0.0
    return sum(leg_distances(order, matrix)) + matrix[order[-1] + 1][0]


def _lateness(
    order: Sequence[int],
    matrix: list[list[float]],
    trips: Sequence[TripLoad],
    start_min: int,
    settings: Settings,
) -> int:
    return schedule_stops(
        leg_distances(order, matrix),
        [trips[i] for i in order],
        start_min,
        speed_kmh=settings.avg_speed_kmh,
        service_time_min=settings.service_time_min,
    ).lateness_min


def _cheapest_insertion(
    trips: Sequence[TripLoad],
    matrix: list[list[float]],
    start_min: int,
    settings: Settings,
) -> list[int]:
    n = len(trips)
    seed = min(range(n), key=lambda i: window_start_priority(trips[i]))
    route = [seed]
    unplaced = [i for i in range(n) if i != seed]
    route_lateness = _lateness(route, matrix, trips, start_min, settings)

    while unplaced:
        best_cost = float("inf")
        best_trip = unplaced[0]
        best_position = len(route)
        # Exact ties keep the lowest trip index and the latest position
        for trip_index in unplaced:
            node = trip_index + 1
            for position in range(len(route), -1, -1):
                before = 0 if position == 0 else route[position - 1] + 1
                after = 0 if position == len(route) else route[position] + 1
                added_km = matrix[before][node] + matrix[node][after] - matrix[before][after]
                candidate = route[:position] + [trip_index] + route[position:]
                added_lateness = _lateness(candidate, matrix, trips, start_min, settings) - route_lateness
                cost = added_km + settings.insertion_window_penalty * added_lateness
                if cost < best_cost:
                    best_cost = cost
                    best_trip = trip_index
                    best_position = position

        route.insert(best_position, best_trip)
        unplaced.remove(best_trip)
        route_lateness = _lateness(route, matrix, trips, start_min, settings)

    return route


def _two_opt_pass(
    best: list[int],
    best_lateness: int,
    matrix: list[list[float]],
    trips: Sequence[TripLoad],
    start_min: int,
    settings: Settings,
) -> tuple[list[int], int, bool]:
    """One sweep over all segment reversals; returns the new order, its lateness and whether it changed."""
    n = len(best)
    improved = False
    for i in range(n - 1):
        for j in range(i + 1, n):
            before = 0 if i == 0 else best[i - 1] + 1
            after = 0 if j == n - 1 else best[j + 1] + 1
            first, last = best[i] + 1, best[j] + 1
            delta = (matrix[before][last] + matrix[first][after]) - (
                matrix[before][first] + matrix[last][after]
            )
            if delta >= -_KM_EPSILON:
                continue
            candidate = best[:i] + best[i : j + 1][::-1] + best[j + 1 :]
            candidate_lateness = _lateness(candidate, matrix, trips, start_min, settings)
            if candidate_lateness > best_lateness:
                continue
            best = candidate
            best_lateness = candidate_lateness
            improved = True
    return best, best_lateness, improved


def _two_opt(
    order: list[int],
    matrix: list[list[float]],
    trips: Sequence[TripLoad],
    start_min: int,
    settings: Settings,
) -> list[int]:
    n = len(order)
    best = list(order)
    best_lateness = _lateness(best, matrix, trips, start_min, settings)
    max_passes = min(settings.two_opt_max_passes, n * n)

    for _ in range(max_passes):
        best, best_lateness, improved = _two_opt_pass(best, best_lateness, matrix, trips, start_min, settings)
        if not improved:
            break

    return best


def optimize_sequence(
    trips: Sequence[TripLoad],
    depot: Coordinates,
    start_time: str,
    *,
    oracle: DistanceOracle | None = None,
    settings: Settings | None = None,
    matrix: list[list[float]] | None = None,
) -> SequenceResult:
    """Near-minimal visiting order for one vehicle's trips.

    Args:
        trips: Trips assigned to the vehicle, in their current order.
        depot: Start and end of the tour.
        start_time: Departure from the depot, "HH:MM".
        oracle: Distance source; defaults to the configured provider.
        settings: Engine constants; defaults to the process settings.
        matrix: Precomputed depot-first distance matrix for ``trips``.

    Returns:
        SequenceResult whose ``order`` is a permutation of ``range(len(trips))``.
    """
    settings = settings or default_settings
    ensure_stop_limit(trips, settings)
    start_min = time_to_minutes(start_time)
    n = len(trips)

    if n == 0:
        return SequenceResult(
            order=[], original_km=0.0, optimized_km=0.0, km_saved=0.0, minutes_saved=0, all_windows_satisfied=True
        )

    if matrix is None:
        oracle = oracle or get_distance_oracle(settings)
        matrix = build_distance_matrix(trips, depot, oracle, km_per_degree=settings.km_per_degree)

    identity = list(range(n))
    original_km = tour_km(identity, matrix)

    if n == 1:
        order = identity
    else:
        order = _two_opt(_cheapest_insertion(trips, matrix, start_min, settings), matrix, trips, start_min, settings)
        if tour_km(order, matrix) > original_km and _lateness(
            identity, matrix, trips, start_min, settings
        ) <= _lateness(order, matrix, trips, start_min, settings):
            order = identity

    optimized_km = tour_km(order, matrix)
    km_saved = max(0.0, original_km - optimized_km)
    schedule = schedule_stops(
        leg_distances(order, matrix),
        [trips[i] for i in order],
        start_min,
        speed_kmh=settings.avg_speed_kmh,
        service_time_min=settings.service_time_min,
    )

    logger.debug(
        f"Sequenced {n} trips: {original_km:.1f} km -> {optimized_km:.1f} km "
        f"(windows satisfied: {all(schedule.compliance)})"
    )

    return SequenceResult(
        order=order,
        original_km=round(original_km, 1),
        optimized_km=round(optimized_km, 1),
        km_saved=round(km_saved, 1),
        minutes_saved=travel_minutes(km_saved, settings.avg_speed_kmh),
        all_windows_satisfied=all(schedule.compliance),
    )
