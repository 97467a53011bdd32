"""Greedy trip reassignment suggestions from overloaded to lightly loaded vehicles."""

from __future__ import annotations

from typing import Sequence

from ...config import Settings, settings as default_settings
from ...models.domain import RedistributionSuggestion, VehicleLoad
from .aggregator import load_percentage


def _can_receive(load: VehicleLoad, settings: Settings) -> bool:
    return load.status == "underloaded" or (
        load.status == "normal" and load.load_percentage < settings.redistribution_receiver_ceiling
    )


def suggest_redistribution(
    loads: Sequence[VehicleLoad], *, settings: Settings | None = None
) -> list[RedistributionSuggestion]:
    """Single pass, at most one suggestion per trip.

    Receivers are not re-measured after a suggestion: callers apply one,
    re-aggregate and ask again.
    """
    settings = settings or default_settings
    target = settings.target_km_per_day
    receivers = [load for load in loads if _can_receive(load, settings)]
    suggestions: list[RedistributionSuggestion] = []

    for source in loads:
        if source.status != "overloaded" or len(source.trips) <= 1:
            continue

        source_excess = source.total_km - target
        for trip in sorted(source.trips, key=lambda t: t.distance_km, reverse=True):
            for receiver in receivers:
                projected_km = receiver.total_km + trip.distance_km
                if load_percentage(projected_km, target) > settings.overload_threshold:
                    continue

                added_excess = max(0.0, projected_km - target) - max(0.0, receiver.total_km - target)
                suggestions.append(
                    RedistributionSuggestion(
                        trip_id=trip.id,
                        trip_folio=trip.folio,
                        from_vehicle_id=source.vehicle_id,
                        from_label=source.label,
                        to_vehicle_id=receiver.vehicle_id,
                        to_label=receiver.label,
                        estimated_km_saved=max(0.0, round(source_excess - added_excess, 1)),
                        reason=(
                            f"Rebalance load ({source.load_percentage}% -> {receiver.load_percentage}%)"
                        ),
                    )
                )
                break

    return suggestions
