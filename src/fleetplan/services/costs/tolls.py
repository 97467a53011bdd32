"""Toll cost estimation by tariff class."""

from __future__ import annotations

from ...config import Settings, settings as default_settings

# Average toll cost per tollable km on Mexican highways.
TOLL_COST_PER_KM: dict[str, float] = {
    "auto": 1.2,
    "camion_2ejes": 2.5,
    "camion_3ejes": 3.5,
    "camion_multieje": 5.0,
}


def estimate_toll_cost(distance_km: float, tariff_class: str, *, settings: Settings | None = None) -> float:
    """Only a share of any route runs on toll roads; that share is configured."""
    settings = settings or default_settings
    try:
        cost_per_km = TOLL_COST_PER_KM[tariff_class]
    except KeyError as exc:
        raise ValueError(
            f"Unknown toll tariff class '{tariff_class}'. Expected one of: {', '.join(TOLL_COST_PER_KM)}"
        ) from exc
    return float(round(distance_km * settings.tollable_distance_share * cost_per_km))
