"""Routing request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field


class StopModel(BaseModel):
    id: str
    address: str
    is_current_location: bool = False


class OptimizeRequest(BaseModel):
    stops: List[Union[str, StopModel]] = Field(..., description="Addresses (or stop objects) to visit.")
    start: str = Field(..., description="Start address, or 'lat, lng' for the device location.")
    end: Optional[str] = Field(
        default=None,
        description="Fixed final destination. Omit (or repeat the start) for a round trip.",
    )
    travel_mode: Literal["driving", "walking"] = "driving"
    avoid_highways: bool = False
    departure_time: Optional[datetime] = Field(
        default=None,
        description="Departure used for arrival estimates. Defaults to the request time (UTC).",
    )
    session_id: Optional[str] = Field(
        default=None,
        description="Client session; a newer request with the same id cancels the older one.",
    )


class InstructionModel(BaseModel):
    text: str
    distance_m: int
    icon: Literal["left", "right", "straight", "uturn", "destination", "start", "roundabout", "generic"]
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class RouteOriginModel(BaseModel):
    stop_id: str
    stop_name: str
    address: str
    latitude: float
    longitude: float
    departure_time: datetime


class RouteStepModel(BaseModel):
    sequence: int
    stop_id: str
    stop_name: str
    address: str
    latitude: float
    longitude: float
    distance_from_prev_m: int
    distance_from_prev: str
    leg_duration_s: int
    leg_duration: str
    cumulative_distance_m: int
    cumulative_duration_s: int
    estimated_arrival: datetime
    google_maps_url: Optional[str] = None
    instructions: List[InstructionModel] = Field(default_factory=list)
    leg_geometry: List[Tuple[float, float]] = Field(default_factory=list)


class RouteResultModel(BaseModel):
    origin: RouteOriginModel
    steps: List[RouteStepModel]
    tour: List[int]
    total_distance_m: int
    total_duration_s: int
    total_distance: str
    total_time: str
    summary: str
    travel_mode: str
    avoid_highways: bool
    round_trip: bool
    route_geometry: List[Tuple[float, float]] = Field(default_factory=list)
