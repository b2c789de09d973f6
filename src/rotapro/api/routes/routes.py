"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from ...models.domain import Stop
from ...schemas.routing import OptimizeRequest, RouteResultModel, StopModel
from ...services.outputs.routing_formatter import route_result_to_csv, route_result_to_json
from ...services.routing.errors import (
    GeocodeFailure,
    InvalidInput,
    OptimizationCancelled,
    RouteOptimizationError,
)
from ...services.routing.models import RouteResult
from ...services.routing.registry import OptimizationRegistry
from ...services.routing.service import RouteOptimizer

router = APIRouter(prefix="/routes", tags=["routes"])

registry = OptimizationRegistry()

logger = logging.getLogger(__name__)


def get_optimizer() -> RouteOptimizer:
    return RouteOptimizer()


def _status_for(error: RouteOptimizationError) -> int:
    if isinstance(error, InvalidInput):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, GeocodeFailure):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(error, OptimizationCancelled):
        return status.HTTP_409_CONFLICT
    return status.HTTP_502_BAD_GATEWAY


async def _run_optimization(payload: OptimizeRequest) -> RouteResult:
    stops = [
        Stop(stop_id=item.id, address=item.address, is_current_location=item.is_current_location)
        if isinstance(item, StopModel)
        else item
        for item in payload.stops
    ]
    work = get_optimizer().optimize(
        stops,
        payload.start,
        payload.end,
        payload.travel_mode,
        payload.avoid_highways,
        departure_time=payload.departure_time,
    )
    try:
        if payload.session_id:
            return await registry.run(payload.session_id, work)
        return await work
    except RouteOptimizationError as exc:
        logger.info("Optimization failed at %s: %s", exc.stage, exc.message)
        raise HTTPException(status_code=_status_for(exc), detail=exc.to_dict()) from exc
    except Exception as exc:
        logger.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"stage": "engine", "message": f"Failed to optimize route: {str(exc)}"},
        ) from exc


@router.post("/optimize", response_model=RouteResultModel, status_code=status.HTTP_200_OK)
async def optimize(payload: OptimizeRequest) -> RouteResultModel:
    result = await _run_optimization(payload)
    return RouteResultModel.model_validate(route_result_to_json(result))


@router.post("/optimize.csv", status_code=status.HTTP_200_OK)
async def optimize_csv(payload: OptimizeRequest) -> Response:
    result = await _run_optimization(payload)
    return Response(
        content=route_result_to_csv(result),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="route.csv"'},
    )
