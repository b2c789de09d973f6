"""Consumer-owned annotations layered over an immutable ``RouteResult``."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from .models import RouteResult


class VisitStatus(str, Enum):
    PENDING = "pending"
    DO_NOT_RETURN = "do_not_return"
    POSSIBILITY = "possibility"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class StepAnnotation:
    status: VisitStatus = VisitStatus.PENDING
    user_notes: str | None = None
    photo_id: str | None = None
    arrival_time: float | None = None
    departure_time: float | None = None


class ItineraryOverlay:
    """Mutable per-step state (status, notes, photos, timestamps) keyed by step index."""

    def __init__(self, result: RouteResult) -> None:
        self.result = result
        self._annotations: dict[int, StepAnnotation] = {}

    def _check_index(self, step_index: int) -> None:
        if not 0 <= step_index < len(self.result.steps):
            raise IndexError(f"step {step_index} is outside the itinerary ({len(self.result.steps)} steps)")

    def get(self, step_index: int) -> StepAnnotation:
        self._check_index(step_index)
        return self._annotations.get(step_index, StepAnnotation())

    def annotate(self, step_index: int, **changes) -> StepAnnotation:
        annotation = replace(self.get(step_index), **changes)
        if not isinstance(annotation.status, VisitStatus):
            annotation = replace(annotation, status=VisitStatus(annotation.status))
        self._annotations[step_index] = annotation
        return annotation

    def clear(self, step_index: int) -> None:
        self._check_index(step_index)
        self._annotations.pop(step_index, None)

    def to_dict(self) -> dict[int, dict]:
        return {
            index: {
                "status": annotation.status.value,
                "user_notes": annotation.user_notes,
                "photo_id": annotation.photo_id,
                "arrival_time": annotation.arrival_time,
                "departure_time": annotation.departure_time,
            }
            for index, annotation in sorted(self._annotations.items())
        }
