"""Overload, underload and time-window alerts derived from aggregated workload."""

from __future__ import annotations

from typing import Sequence

from ...config import Settings, settings as default_settings
from ...models.domain import LoadAlert, VehicleLoad


def generate_alerts(loads: Sequence[VehicleLoad], *, settings: Settings | None = None) -> list[LoadAlert]:
    """One pass over ``loads``; each condition on a vehicle yields its own alert.

    Vehicles without trips are never flagged as underloaded.
    """
    settings = settings or default_settings
    alerts: list[LoadAlert] = []

    for load in loads:
        km_details = {
            "current_km": load.total_km,
            "target_km": settings.target_km_per_day,
            "load_percentage": load.load_percentage,
            "estimated_hours": load.estimated_hours,
            "hours_per_day": settings.hours_per_day,
        }

        if load.status == "overloaded":
            alerts.append(
                LoadAlert(
                    type="overload",
                    vehicle_id=load.vehicle_id,
                    label=load.label,
                    message=f"{load.label} overloaded: {load.total_km:g} km ({load.load_percentage}%)",
                    severity="error",
                    details=km_details,
                )
            )

        if load.status == "underloaded" and load.trip_count > 0:
            alerts.append(
                LoadAlert(
                    type="underload",
                    vehicle_id=load.vehicle_id,
                    label=load.label,
                    message=f"{load.label} underloaded: {load.total_km:g} km ({load.load_percentage}%)",
                    severity="warning",
                    details=dict(km_details),
                )
            )

        path = load.critical_path
        if path is not None and not all(path.window_compliance):
            conflicting = [trip.folio for trip, ok in zip(path.sequence, path.window_compliance) if not ok]
            alerts.append(
                LoadAlert(
                    type="window_conflict",
                    vehicle_id=load.vehicle_id,
                    label=load.label,
                    message=f"{load.label} has {len(conflicting)} trip(s) outside their time window",
                    severity="warning",
                    details={"conflicting_folios": conflicting},
                )
            )

    return alerts
