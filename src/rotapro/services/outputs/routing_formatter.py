"""Serializers for routing outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict
from datetime import datetime

from ..routing.models import Instruction, RouteOrigin, RouteResult, RouteStep


def format_distance(distance_m: int) -> str:
    if distance_m < 1000:
        return f"{distance_m} m"
    return f"{distance_m / 1000:.1f} km"


def format_duration(duration_s: int) -> str:
    minutes = int(round(duration_s / 60))
    if minutes < 60:
        return f"{minutes} min"
    hours, minutes = divmod(minutes, 60)
    return f"{hours} h {minutes:02d} min"


def _step_to_json(step: RouteStep) -> dict:
    return {
        "sequence": step.sequence,
        "stop_id": step.stop_id,
        "stop_name": step.stop_name,
        "address": step.address,
        "latitude": step.latitude,
        "longitude": step.longitude,
        "distance_from_prev_m": step.distance_from_prev_m,
        "distance_from_prev": format_distance(step.distance_from_prev_m),
        "leg_duration_s": step.leg_duration_s,
        "leg_duration": format_duration(step.leg_duration_s),
        "cumulative_distance_m": step.cumulative_distance_m,
        "cumulative_duration_s": step.cumulative_duration_s,
        "estimated_arrival": step.estimated_arrival.isoformat(),
        "google_maps_url": step.google_maps_url,
        "instructions": [asdict(instruction) for instruction in step.instructions],
        "leg_geometry": [list(point) for point in step.leg_geometry],
    }


def route_result_to_json(result: RouteResult) -> dict:
    origin = asdict(result.origin)
    origin["departure_time"] = result.origin.departure_time.isoformat()
    return {
        "origin": origin,
        "steps": [_step_to_json(step) for step in result.steps],
        "tour": list(result.tour),
        "total_distance_m": result.total_distance_m,
        "total_duration_s": result.total_duration_s,
        "total_distance": format_distance(result.total_distance_m),
        "total_time": format_duration(result.total_duration_s),
        "summary": result.summary,
        "travel_mode": result.travel_mode,
        "avoid_highways": result.avoid_highways,
        "round_trip": result.round_trip,
        "route_geometry": [list(point) for point in result.route_geometry],
    }


def route_result_from_json(payload: dict) -> RouteResult:
    """Rebuild a persisted result so it can be replayed without re-optimizing."""
    origin_data = dict(payload["origin"])
    origin_data["departure_time"] = datetime.fromisoformat(origin_data["departure_time"])
    steps = tuple(
        RouteStep(
            sequence=step["sequence"],
            stop_id=step["stop_id"],
            stop_name=step["stop_name"],
            address=step["address"],
            latitude=step["latitude"],
            longitude=step["longitude"],
            distance_from_prev_m=step["distance_from_prev_m"],
            leg_duration_s=step["leg_duration_s"],
            cumulative_distance_m=step["cumulative_distance_m"],
            cumulative_duration_s=step["cumulative_duration_s"],
            estimated_arrival=datetime.fromisoformat(step["estimated_arrival"]),
            instructions=tuple(Instruction(**instruction) for instruction in step.get("instructions", [])),
            leg_geometry=tuple(tuple(point) for point in step.get("leg_geometry", [])),
            google_maps_url=step.get("google_maps_url"),
        )
        for step in payload["steps"]
    )
    return RouteResult(
        origin=RouteOrigin(**origin_data),
        steps=steps,
        tour=tuple(payload["tour"]),
        total_distance_m=payload["total_distance_m"],
        total_duration_s=payload["total_duration_s"],
        summary=payload["summary"],
        travel_mode=payload["travel_mode"],
        avoid_highways=payload["avoid_highways"],
        round_trip=payload["round_trip"],
        route_geometry=tuple(tuple(point) for point in payload.get("route_geometry", [])),
    )


def route_result_to_csv(result: RouteResult) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "stop_id",
        "stop_name",
        "address",
        "latitude",
        "longitude",
        "distance_from_prev_m",
        "leg_duration_s",
        "cumulative_distance_m",
        "cumulative_duration_s",
        "estimated_arrival",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for step in result.steps:
        writer.writerow(
            {
                "sequence": step.sequence,
                "stop_id": step.stop_id,
                "stop_name": step.stop_name,
                "address": step.address,
                "latitude": step.latitude,
                "longitude": step.longitude,
                "distance_from_prev_m": step.distance_from_prev_m,
                "leg_duration_s": step.leg_duration_s,
                "cumulative_distance_m": step.cumulative_distance_m,
                "cumulative_duration_s": step.cumulative_duration_s,
                "estimated_arrival": step.estimated_arrival.isoformat(),
            }
        )
    return buffer.getvalue()
