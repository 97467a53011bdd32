"""Recorded fuel performance per vehicle, read from the database when available."""

from __future__ import annotations

import logging

from ..db.supabase import get_supabase_client
from ..models.domain import VehicleFuelEfficiency

logger = logging.getLogger(__name__)

FUEL_PERFORMANCE_TABLE = "vehicle_fuel_performance"


def _row_to_efficiency(row: dict) -> VehicleFuelEfficiency:
    return VehicleFuelEfficiency(
        vehicle_id=str(row["vehicle_id"]),
        average_km_per_liter=float(row["average_km_per_liter"]),
        fill_count=int(row.get("fill_count") or 0),
    )


def get_vehicle_fuel_efficiency(vehicle_id: str) -> VehicleFuelEfficiency | None:
    """Return the vehicle's recorded km/L, or None when nothing usable is stored.

    A missing database, an empty result or a failed query all return None so
    callers fall back to expected efficiency by unit type.
    """
    supabase = get_supabase_client()
    if not supabase:
        return None

    try:
        response = (
            supabase.table(FUEL_PERFORMANCE_TABLE)
            .select("vehicle_id, average_km_per_liter, fill_count")
            .eq("vehicle_id", vehicle_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.warning(f"Fuel performance lookup failed for vehicle {vehicle_id}, using defaults: {e}")
        return None

    if not response.data:
        return None

    try:
        efficiency = _row_to_efficiency(response.data[0])
    except (KeyError, ValueError, TypeError) as e:
        logger.warning(f"Skipping invalid fuel performance row for vehicle {vehicle_id}: {e}")
        return None

    if efficiency.average_km_per_liter <= 0:
        return None
    return efficiency
