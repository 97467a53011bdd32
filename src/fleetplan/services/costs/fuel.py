"""Fuel cost estimation for planned distances."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ...config import Settings, settings as default_settings
from ...data.fuel_repository import get_vehicle_fuel_efficiency
from ...models.domain import FuelEstimate, VehicleFuelEfficiency

logger = logging.getLogger(__name__)

# Expected km per liter by unit type when a vehicle has no usable history.
EXPECTED_EFFICIENCY_KM_L: dict[str, float] = {
    "camioneta": 10.0,
    "torton": 4.2,
    "rabon": 5.0,
    "trailer": 3.0,
    "tractocamion": 2.5,
    "camion_3ejes": 3.8,
    "camion_volteo": 4.0,
}

EfficiencyLookup = Callable[[str], Optional[VehicleFuelEfficiency]]


class FuelCostEstimator:
    """Estimates liters and cost for a distance driven by a given vehicle."""

    def __init__(
        self,
        efficiency_lookup: EfficiencyLookup | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.efficiency_lookup = efficiency_lookup or get_vehicle_fuel_efficiency
        self.settings = settings or default_settings

    def expected_efficiency(self, unit_type: str | None) -> float:
        key = (unit_type or self.settings.default_unit_type).strip().lower()
        return EXPECTED_EFFICIENCY_KM_L.get(key, self.settings.default_fuel_efficiency_km_l)

    def estimate(self, distance_km: float, vehicle_id: str | None = None, unit_type: str | None = None) -> FuelEstimate:
        if distance_km < 0:
            raise ValueError(f"distance_km must be >= 0, got {distance_km}")

        efficiency = None
        if vehicle_id:
            recorded = self.efficiency_lookup(vehicle_id)
            if recorded and recorded.fill_count >= self.settings.min_fuel_fills_for_real_efficiency:
                efficiency = recorded.average_km_per_liter

        is_real = efficiency is not None
        if efficiency is None:
            efficiency = self.expected_efficiency(unit_type)

        liters = round(distance_km / efficiency, 2)
        cost = round(liters * self.settings.diesel_price_per_liter, 2)
        logger.debug(
            f"Fuel estimate for {vehicle_id or unit_type}: {distance_km:.1f} km at {efficiency} km/L "
            f"({'recorded' if is_real else 'expected'}) -> {liters} L, {cost}"
        )
        return FuelEstimate(
            liters_estimate=liters,
            cost_estimate=cost,
            efficiency_km_l=efficiency,
            is_real_efficiency=is_real,
        )
