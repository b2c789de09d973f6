"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Sequence

CostMetric = Literal["duration", "distance"]

InstructionIcon = Literal[
    "left",
    "right",
    "straight",
    "uturn",
    "destination",
    "start",
    "roundabout",
    "generic",
]


@dataclass(frozen=True, slots=True)
class CostCell:
    distance_m: int
    duration_s: int


class CostMatrix:
    """Asymmetric N x N travel cost table indexed by point position.

    The diagonal is never consulted. Construction rejects missing
    off-diagonal cells so the sequencer always works on complete data.
    """

    __slots__ = ("_distances", "_durations")

    def __init__(self, distances: Sequence[Sequence[int]], durations: Sequence[Sequence[int]]) -> None:
        size = len(durations)
        if len(distances) != size:
            raise ValueError(f"Matrix size mismatch: durations={size}, distances={len(distances)}")
        for row_index, (distance_row, duration_row) in enumerate(zip(distances, durations)):
            if len(distance_row) != size or len(duration_row) != size:
                raise ValueError(f"Matrix row {row_index} is not {size} wide.")
            for col_index in range(size):
                if col_index == row_index:
                    continue
                if distance_row[col_index] is None or duration_row[col_index] is None:
                    raise ValueError(f"Matrix cell ({row_index}, {col_index}) is missing.")
        self._distances = tuple(
            tuple(0 if i == j else int(value) for j, value in enumerate(row)) for i, row in enumerate(distances)
        )
        self._durations = tuple(
            tuple(0 if i == j else int(value) for j, value in enumerate(row)) for i, row in enumerate(durations)
        )

    def __len__(self) -> int:
        return len(self._durations)

    def cell(self, origin: int, destination: int) -> CostCell:
        return CostCell(
            distance_m=self._distances[origin][destination],
            duration_s=self._durations[origin][destination],
        )

    def cost(self, origin: int, destination: int, metric: CostMetric = "duration") -> int:
        if metric == "distance":
            return self._distances[origin][destination]
        return self._durations[origin][destination]

    @property
    def distances(self) -> tuple[tuple[int, ...], ...]:
        return self._distances

    @property
    def durations(self) -> tuple[tuple[int, ...], ...]:
        return self._durations


@dataclass(frozen=True, slots=True)
class Tour:
    order: tuple[int, ...]
    round_trip: bool
    cost: int
    converged: bool = True

    def __len__(self) -> int:
        return len(self.order)

    def leg_pairs(self) -> list[tuple[int, int]]:
        """Consecutive (origin, destination) pairs, closing the loop on round trips."""
        pairs = list(zip(self.order, self.order[1:]))
        if self.round_trip and len(self.order) > 1:
            pairs.append((self.order[-1], self.order[0]))
        return pairs


@dataclass(frozen=True, slots=True)
class Instruction:
    text: str
    distance_m: int
    icon: InstructionIcon
    latitude: float | None = None
    longitude: float | None = None


@dataclass(frozen=True, slots=True)
class Leg:
    leg_index: int
    origin_index: int
    destination_index: int
    distance_m: int
    duration_s: int
    geometry: tuple[tuple[float, float], ...]
    instructions: tuple[Instruction, ...]


@dataclass(frozen=True, slots=True)
class RouteOrigin:
    stop_id: str
    stop_name: str
    address: str
    latitude: float
    longitude: float
    departure_time: datetime


@dataclass(frozen=True, slots=True)
class RouteStep:
    sequence: int
    stop_id: str
    stop_name: str
    address: str
    latitude: float
    longitude: float
    distance_from_prev_m: int
    leg_duration_s: int
    cumulative_distance_m: int
    cumulative_duration_s: int
    estimated_arrival: datetime
    instructions: tuple[Instruction, ...] = ()
    leg_geometry: tuple[tuple[float, float], ...] = ()
    google_maps_url: str | None = None


@dataclass(frozen=True, slots=True)
class RouteResult:
    origin: RouteOrigin
    steps: tuple[RouteStep, ...]
    tour: tuple[int, ...]
    total_distance_m: int
    total_duration_s: int
    summary: str
    travel_mode: str
    avoid_highways: bool
    round_trip: bool
    route_geometry: tuple[tuple[float, float], ...] = ()
