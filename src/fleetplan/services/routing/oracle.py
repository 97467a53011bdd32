"""Distance oracles and directions services consumed by the workload engine."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from ...config import Settings, settings as default_settings
from ...models.domain import Coordinates
from ..geospatial import coordinates_distance_km
from .osrm_client import OSRMClient, decode_polyline

logger = logging.getLogger(__name__)


class DistanceOracle(Protocol):
    def distance_km(self, a: Coordinates, b: Coordinates) -> float: ...

    def distance_matrix(self, points: Sequence[Coordinates]) -> list[list[float]]: ...


class DirectionsService(Protocol):
    def route_geometry(self, points: Sequence[Coordinates]) -> list[tuple[float, float]]: ...


class PairwiseDistanceOracle:
    """Base oracle building a symmetric matrix from single-pair lookups."""

    def distance_km(self, a: Coordinates, b: Coordinates) -> float:
        raise NotImplementedError

    def distance_matrix(self, points: Sequence[Coordinates]) -> list[list[float]]:
        n = len(points)
        matrix = [[0.0] * n for _ in range(n)]
        for i in range(n):
            for j in range(i + 1, n):
                value = self.distance_km(points[i], points[j])
                matrix[i][j] = value
                matrix[j][i] = value
        return matrix


class HaversineDistanceOracle(PairwiseDistanceOracle):
    """Straight-line (great-circle) distances."""

    def distance_km(self, a: Coordinates, b: Coordinates) -> float:
        return coordinates_distance_km(a, b)


class OSRMDistanceOracle:
    """Road distances from an OSRM table request.

    OSRM distances are directional; the matrix averages both directions so the
    optimizer can reverse segments freely. Pairs OSRM cannot route fall back to
    great-circle distance.
    """

    def __init__(self, client: OSRMClient | None = None) -> None:
        self.client = client or OSRMClient()

    def distance_km(self, a: Coordinates, b: Coordinates) -> float:
        return self.distance_matrix([a, b])[0][1]

    def distance_matrix(self, points: Sequence[Coordinates]) -> list[list[float]]:
        n = len(points)
        if n < 2:
            return [[0.0] * n for _ in range(n)]

        table = self.client.table([(p.latitude, p.longitude) for p in points])
        distances = table["distances"]
        matrix = [[0.0] * n for _ in range(n)]
        unreachable = 0
        for i in range(n):
            for j in range(i + 1, n):
                forward, backward = distances[i][j], distances[j][i]
                if forward is None or backward is None:
                    unreachable += 1
                    value = coordinates_distance_km(points[i], points[j])
                else:
                    value = (forward + backward) / 2.0 / 1000.0
                matrix[i][j] = value
                matrix[j][i] = value

        if unreachable:
            logger.warning(
                f"OSRM could not route {unreachable} of {n * (n - 1) // 2} stop pairs; "
                f"using great-circle distance for those pairs"
            )
        return matrix


class OSRMDirectionsService:
    """Turn-by-turn geometry for a visiting order."""

    def __init__(self, client: OSRMClient | None = None) -> None:
        self.client = client or OSRMClient()

    def route_geometry(self, points: Sequence[Coordinates]) -> list[tuple[float, float]]:
        data = self.client.route([(p.latitude, p.longitude) for p in points])
        routes = data.get("routes") or []
        if not routes or not routes[0].get("geometry"):
            return [(p.latitude, p.longitude) for p in points]
        return decode_polyline(routes[0]["geometry"])


def get_distance_oracle(settings: Settings | None = None) -> DistanceOracle:
    settings = settings or default_settings
    if settings.distance_provider == "osrm":
        return OSRMDistanceOracle(
            OSRMClient(
                base_url=settings.osrm_base_url,
                profile=settings.osrm_profile,
                max_retries=settings.osrm_max_retries,
                backoff_seconds=settings.osrm_backoff_seconds,
            )
        )
    return HaversineDistanceOracle()


def get_directions_service(settings: Settings | None = None) -> DirectionsService | None:
    """Directions need a road network; without OSRM there is no geometry."""
    settings = settings or default_settings
    if settings.distance_provider != "osrm" or not settings.osrm_base_url:
        return None
    return OSRMDirectionsService(
        OSRMClient(
            base_url=settings.osrm_base_url,
            profile=settings.osrm_profile,
            max_retries=settings.osrm_max_retries,
            backoff_seconds=settings.osrm_backoff_seconds,
        )
    )
