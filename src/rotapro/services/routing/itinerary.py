"""Expansion of a sequenced tour into a detailed, timed itinerary."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Sequence
from urllib.parse import urlencode

from ...config import settings
from ...models.domain import ResolvedPoint, TravelMode
from ..outputs.routing_formatter import format_distance, format_duration
from .concurrency import gather_bounded
from .errors import LegFailure, ProviderError
from .instructions import build_instruction
from .models import Leg, RouteOrigin, RouteResult, RouteStep, Tour
from .osrm_client import OSRMClient, decode_polyline

logger = logging.getLogger(__name__)

GOOGLE_MAPS_DIRECTIONS_URL = "https://www.google.com/maps/dir/"


def google_maps_url(origin: ResolvedPoint, destination: ResolvedPoint, mode: TravelMode, avoid_highways: bool) -> str:
    params = {
        "api": 1,
        "origin": f"{origin.latitude:.6f},{origin.longitude:.6f}",
        "destination": f"{destination.latitude:.6f},{destination.longitude:.6f}",
        "travelmode": mode.value,
    }
    if avoid_highways and mode is TravelMode.DRIVING:
        params["avoid"] = "highways"
    return f"{GOOGLE_MAPS_DIRECTIONS_URL}?{urlencode(params)}"


def leg_from_route(leg_index: int, origin_index: int, destination_index: int, route: dict) -> Leg:
    """Build a ``Leg`` from a two-waypoint OSRM route object."""
    geometry = route.get("geometry")
    if not isinstance(geometry, str):
        raise ProviderError("OSRM route response is missing the encoded geometry.")
    steps = [step for leg in route.get("legs", []) for step in leg.get("steps", [])]
    return Leg(
        leg_index=leg_index,
        origin_index=origin_index,
        destination_index=destination_index,
        distance_m=int(round(route["distance"])),
        duration_s=int(round(route["duration"])),
        geometry=tuple(decode_polyline(geometry)),
        instructions=tuple(build_instruction(step) for step in steps),
    )


def build_summary(step_count: int, round_trip: bool, total_distance_m: int, total_duration_s: int) -> str:
    stops = step_count - 1 if round_trip else step_count
    trip = "round trip" if round_trip else "one way"
    noun = "stop" if stops == 1 else "stops"
    return (
        f"{stops} {noun}, {trip}: {format_distance(total_distance_m)} "
        f"in about {format_duration(total_duration_s)}"
    )


class ItineraryAssembler:
    def __init__(self, client: OSRMClient | None = None, max_parallel_requests: int | None = None) -> None:
        self.client = client or OSRMClient()
        self.max_parallel_requests = max_parallel_requests or settings.provider_max_parallel_requests

    async def _fetch_leg(
        self,
        leg_index: int,
        origin: ResolvedPoint,
        destination: ResolvedPoint,
        origin_index: int,
        destination_index: int,
        mode: TravelMode,
        avoid_highways: bool,
    ) -> Leg:
        try:
            route = await self.client.route(
                [origin.coordinate, destination.coordinate],
                mode=mode,
                avoid_highways=avoid_highways,
            )
            return leg_from_route(leg_index, origin_index, destination_index, route)
        except ProviderError as exc:
            logger.warning("Leg %s (%s -> %s) failed: %s", leg_index, origin_index, destination_index, exc)
            raise LegFailure(leg_index, exc.message) from exc
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            raise LegFailure(leg_index, f"malformed route response ({exc})") from exc

    async def assemble(
        self,
        tour: Tour,
        points: Sequence[ResolvedPoint],
        mode: TravelMode,
        avoid_highways: bool = False,
        *,
        departure_time: datetime | None = None,
    ) -> RouteResult:
        departure_time = departure_time or datetime.now(timezone.utc)
        pairs = tour.leg_pairs()
        logger.info("Fetching %s leg(s) for itinerary", len(pairs))

        legs = await gather_bounded(
            [
                lambda index=index, a=a, b=b: self._fetch_leg(
                    index, points[a], points[b], a, b, mode, avoid_highways
                )
                for index, (a, b) in enumerate(pairs)
            ],
            self.max_parallel_requests,
        )

        steps: list[RouteStep] = []
        route_geometry: list[tuple[float, float]] = []
        total_distance = 0
        total_duration = 0
        for leg in legs:
            total_distance += leg.distance_m
            total_duration += leg.duration_s
            route_geometry.extend(leg.geometry)
            origin = points[leg.origin_index]
            destination = points[leg.destination_index]
            steps.append(
                RouteStep(
                    sequence=leg.leg_index + 1,
                    stop_id=destination.stop.stop_id,
                    stop_name=destination.name,
                    address=destination.stop.address,
                    latitude=destination.latitude,
                    longitude=destination.longitude,
                    distance_from_prev_m=leg.distance_m,
                    leg_duration_s=leg.duration_s,
                    cumulative_distance_m=total_distance,
                    cumulative_duration_s=total_duration,
                    estimated_arrival=departure_time + timedelta(seconds=total_duration),
                    instructions=leg.instructions,
                    leg_geometry=leg.geometry,
                    google_maps_url=google_maps_url(origin, destination, mode, avoid_highways),
                )
            )

        start = points[tour.order[0]]
        return RouteResult(
            origin=RouteOrigin(
                stop_id=start.stop.stop_id,
                stop_name=start.name,
                address=start.stop.address,
                latitude=start.latitude,
                longitude=start.longitude,
                departure_time=departure_time,
            ),
            steps=tuple(steps),
            tour=tour.order,
            total_distance_m=total_distance,
            total_duration_s=total_duration,
            summary=build_summary(len(steps), tour.round_trip, total_distance, total_duration),
            travel_mode=mode.value,
            avoid_highways=avoid_highways,
            round_trip=tour.round_trip,
            route_geometry=tuple(route_geometry),
        )
