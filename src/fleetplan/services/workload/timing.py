"""Clock arithmetic shared by the sequence optimizer and the critical path.

Times travel as minutes since midnight internally and are formatted back to
"HH:MM" only at the edges.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from ...models.domain import TripLoad

MINUTES_PER_DAY = 24 * 60


@dataclass(slots=True)
class StopSchedule:
    arrivals: list[int]
    compliance: list[bool]
    lateness_min: int
    finish_min: int


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def time_to_minutes(value: str) -> int:
    try:
        hours_text, minutes_text = value.split(":")
        hours, minutes = int(hours_text), int(minutes_text)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid time '{value}', expected HH:MM") from exc
    if not (0 <= hours <= 24 and 0 <= minutes < 60) or (hours == 24 and minutes):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    hours = (minutes // 60) % 24
    return f"{hours:02d}:{minutes % 60:02d}"


def travel_minutes(distance_km: float, speed_kmh: float) -> int:
    if speed_kmh <= 0:
        raise ValueError(f"speed_kmh must be > 0, got {speed_kmh}")
    return round_half_up(distance_km / speed_kmh * 60)


def window_bounds(trip: TripLoad) -> tuple[int, int]:
    """Missing bounds open the window to the whole day."""
    start = time_to_minutes(trip.window_start) if trip.window_start else 0
    end = time_to_minutes(trip.window_end) if trip.window_end else MINUTES_PER_DAY
    return start, end


def has_window(trip: TripLoad) -> bool:
    return bool(trip.window_start or trip.window_end)


def is_within_window(arrival_min: int, trip: TripLoad) -> bool:
    if not has_window(trip):
        return True
    start, end = window_bounds(trip)
    return start <= arrival_min <= end


def lateness_minutes(arrival_min: int, trip: TripLoad) -> int:
    if not trip.window_end:
        return 0
    return max(0, arrival_min - time_to_minutes(trip.window_end))


def window_start_priority(trip: TripLoad) -> int:
    """Sort key: trips without a window come last."""
    return time_to_minutes(trip.window_start) if trip.window_start else MINUTES_PER_DAY


def schedule_stops(
    leg_km: Sequence[float],
    trips: Sequence[TripLoad],
    start_min: int,
    *,
    speed_kmh: float,
    service_time_min: int,
) -> StopSchedule:
    """Walk a visiting order and time every arrival.

    ``leg_km[i]`` is the distance driven to reach ``trips[i]``. Arrival is
    recorded before the dwell at the stop.
    """

    if len(leg_km) != len(trips):
        raise ValueError(f"leg_km has {len(leg_km)} entries for {len(trips)} trips")

    clock = start_min
    arrivals: list[int] = []
    compliance: list[bool] = []
    lateness = 0
    for distance, trip in zip(leg_km, trips):
        clock += travel_minutes(distance, speed_kmh)
        arrivals.append(clock)
        compliance.append(is_within_window(clock, trip))
        lateness += lateness_minutes(clock, trip)
        clock += service_time_min
    return StopSchedule(arrivals=arrivals, compliance=compliance, lateness_min=lateness, finish_min=clock)
