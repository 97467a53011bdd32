"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
import re
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.domain import TollTariffClass

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="FLEETPLAN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Fleet Workload Planner API"
    api_prefix: str = "/api"

    # Workload model
    avg_speed_kmh: float = Field(default=60.0, gt=0.0, description="Average road speed used to convert km to minutes.")
    service_time_min: int = Field(default=30, ge=0, description="Dwell time at each stop (loading/unloading).")
    target_km_per_day: float = Field(default=600.0, gt=0.0, description="Denominator of the load percentage.")
    underload_threshold: int = Field(default=50, ge=0)
    overload_threshold: int = Field(default=100, ge=0)
    hours_per_day: int = Field(default=10, ge=1)
    depot_latitude: float = Field(default=19.7129, ge=-90.0, le=90.0)
    depot_longitude: float = Field(default=-98.9688, ge=-180.0, le=180.0)
    default_start_time: str = Field(default="06:00", description="Itinerary start time (HH:MM).")

    # Sequence optimizer
    max_stops_per_vehicle: int = Field(default=25, ge=1)
    two_opt_max_passes: int = Field(default=50, ge=1)
    insertion_window_penalty: float = Field(default=10.0, ge=0.0)
    km_per_degree: float = Field(default=111.0, gt=0.0, description="Scale used to place proxy destinations.")

    # Redistribution and aggregation
    redistribution_receiver_ceiling: int = Field(default=70, ge=0)
    workload_max_workers: int = Field(default=4, ge=1)
    isolate_vehicle_failures: bool = True

    # Cost estimation
    diesel_price_per_liter: float = Field(default=24.5, ge=0.0)
    min_fuel_fills_for_real_efficiency: int = Field(default=3, ge=1)
    default_unit_type: str = "torton"
    default_fuel_efficiency_km_l: float = Field(default=4.0, gt=0.0)
    default_toll_tariff_class: TollTariffClass = "camion_2ejes"
    tollable_distance_share: float = Field(default=0.6, ge=0.0, le=1.0)

    # Distance provider
    distance_provider: Literal["haversine", "osrm"] = Field(
        default="haversine",
        description="Backend used to measure distances between stops.",
    )
    osrm_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the OSRM routing service (e.g., http://localhost:5000).",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing road distances.",
    )
    osrm_max_retries: int = Field(default=3, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("default_start_time")
    @classmethod
    def _validate_start_time(cls, value: str) -> str:
        if not _HHMM.match(value):
            raise ValueError(f"default_start_time must be HH:MM, got '{value}'")
        return value

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if self.underload_threshold > self.overload_threshold:
            raise ValueError(
                f"underload_threshold ({self.underload_threshold}) must not exceed "
                f"overload_threshold ({self.overload_threshold})"
            )
        return self


settings = Settings()
