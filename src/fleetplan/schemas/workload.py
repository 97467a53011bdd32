"""Workload request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from ..models.domain import Coordinates, TollTariffClass, TripLoad, VehicleInfo

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CoordinatesModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


class TripLoadModel(BaseModel):
    id: str
    folio: str
    vehicle_id: str
    distance_km: float = Field(..., gt=0)
    destination_coordinates: Optional[CoordinatesModel] = None
    window_start: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    window_end: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    client_name: Optional[str] = None
    destination: Optional[str] = None

    def to_domain(self) -> TripLoad:
        return TripLoad(
            id=self.id,
            folio=self.folio,
            vehicle_id=self.vehicle_id,
            distance_km=self.distance_km,
            destination_coordinates=self.destination_coordinates.to_domain() if self.destination_coordinates else None,
            window_start=self.window_start,
            window_end=self.window_end,
            client_name=self.client_name,
            destination=self.destination,
        )


class VehicleInfoModel(BaseModel):
    id: str
    label: str
    brand: str = ""
    unit_type: str = ""
    driver_name: Optional[str] = None
    toll_tariff_class: Optional[TollTariffClass] = Field(
        default=None, description="Toll tariff class; defaults to the configured class."
    )

    def to_domain(self) -> VehicleInfo:
        return VehicleInfo(
            id=self.id,
            label=self.label,
            brand=self.brand,
            unit_type=self.unit_type,
            driver_name=self.driver_name,
            toll_tariff_class=self.toll_tariff_class,
        )


class ItineraryRequest(BaseModel):
    trips: List[TripLoadModel] = Field(..., description="Trips assigned to a single vehicle.")
    depot: Optional[CoordinatesModel] = Field(default=None, description="Defaults to the configured depot.")
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)


class SequenceRequest(ItineraryRequest):
    pass


class CriticalPathRequest(ItineraryRequest):
    include_geometry: bool = Field(default=False, description="Attach road geometry when OSRM is configured.")


class WorkloadAnalysisRequest(BaseModel):
    vehicles: List[VehicleInfoModel]
    trips: List[TripLoadModel]
    depot: Optional[CoordinatesModel] = None
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)


class SequenceResponse(BaseModel):
    order: List[int]
    ordered_trip_ids: List[str]
    original_km: float
    optimized_km: float
    km_saved: float
    minutes_saved: int
    all_windows_satisfied: bool


class CriticalPathModel(BaseModel):
    sequence: List[TripLoadModel]
    total_km: float
    deadhead_km: float
    total_minutes: int
    start_time: str
    end_time: str
    arrival_times: List[str]
    window_compliance: List[bool]
    geometry: Optional[List[Tuple[float, float]]] = None


class VehicleLoadModel(BaseModel):
    vehicle_id: str
    label: str
    brand: str
    unit_type: str
    driver_name: Optional[str]
    total_km: float
    estimated_hours: float
    fuel_cost_estimate: float
    toll_cost_estimate: float
    trip_count: int
    load_percentage: int
    status: Literal["underloaded", "normal", "overloaded"]
    trips: List[TripLoadModel]
    critical_path: Optional[CriticalPathModel] = None
    error: Optional[str] = None


class LoadAlertModel(BaseModel):
    type: Literal["overload", "underload", "window_conflict"]
    vehicle_id: str
    label: str
    message: str
    severity: Literal["warning", "error"]
    details: Dict = Field(default_factory=dict)


class RedistributionSuggestionModel(BaseModel):
    trip_id: str
    trip_folio: str
    from_vehicle_id: str
    from_label: str
    to_vehicle_id: str
    to_label: str
    estimated_km_saved: float
    reason: str


class WorkloadAnalysisResponse(BaseModel):
    loads: List[VehicleLoadModel]
    alerts: List[LoadAlertModel]
    suggestions: List[RedistributionSuggestionModel]
    metadata: dict
