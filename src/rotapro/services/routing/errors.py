"""Failure taxonomy raised by the route optimization engine.

Every error carries the pipeline ``stage`` that produced it and a single
human-readable ``message`` so callers can surface it without inspecting
the exception type.
"""

from __future__ import annotations


class RouteOptimizationError(Exception):
    stage = "engine"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"stage": self.stage, "message": self.message}


class InvalidInput(RouteOptimizationError):
    stage = "validation"


class GeocodeFailure(RouteOptimizationError):
    stage = "geocoding"

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"Could not resolve address '{address}': {reason}")
        self.address = address
        self.reason = reason


class MatrixFailure(RouteOptimizationError):
    stage = "matrix"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Could not obtain travel costs between stops: {reason}")
        self.reason = reason


class LegFailure(RouteOptimizationError):
    stage = "itinerary"

    def __init__(self, leg_index: int, reason: str) -> None:
        super().__init__(f"Could not compute directions for leg {leg_index + 1}: {reason}")
        self.leg_index = leg_index
        self.reason = reason


class ProviderError(RouteOptimizationError):
    """Non-retryable answer from the routing or geocoding provider."""

    stage = "provider"


class ProviderUnavailable(ProviderError):
    """Network failure, timeout, rate limit or 5xx persisting after retries."""


class OptimizationCancelled(RouteOptimizationError):
    stage = "cancelled"

    def __init__(self, message: str = "Optimization was superseded by a newer request.") -> None:
        super().__init__(message)
