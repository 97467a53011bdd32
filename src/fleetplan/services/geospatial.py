"""Geospatial helper functions."""

from __future__ import annotations

import math

from ..models.domain import Coordinates

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def coordinates_distance_km(a: Coordinates, b: Coordinates) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def proxy_destination(depot: Coordinates, distance_km: float, *, km_per_degree: float = 111.0) -> Coordinates:
    """Stand-in location for a trip whose destination was never geocoded.

    The point sits due north of the depot, ``distance_km / km_per_degree``
    degrees of latitude away, so its distance from the depot approximates the
    trip's planned distance. Latitude is clamped to the valid range.
    """

    if distance_km < 0:
        raise ValueError(f"distance_km must be >= 0, got {distance_km}")
    latitude = min(90.0, depot.latitude + distance_km / km_per_degree)
    return Coordinates(latitude=latitude, longitude=depot.longitude)
