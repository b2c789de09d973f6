"""Domain models for stops submitted to the engine and their resolved locations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TravelMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"


@dataclass(frozen=True, slots=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class Stop:
    """A location requested by the caller, identified by free-text address."""

    stop_id: str
    address: str
    is_current_location: bool = False


@dataclass(frozen=True, slots=True)
class ResolvedPoint:
    """A stop enriched with the coordinates returned by the geocoder."""

    stop: Stop
    latitude: float
    longitude: float
    display_name: str | None = None

    @property
    def coordinate(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)

    @property
    def name(self) -> str:
        if self.stop.is_current_location:
            return "Current location"
        label = self.stop.address.split(",")[0].strip()
        return label or self.stop.address
