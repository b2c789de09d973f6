"""Routing orchestration service."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Sequence

from ...config import settings
from ...models.domain import ResolvedPoint, Stop, TravelMode
from .concurrency import gather_bounded
from .errors import InvalidInput
from .geocoder import NominatimGeocoder
from .itinerary import ItineraryAssembler
from .matrix import MatrixBuilder
from .models import RouteResult
from .osrm_client import OSRMClient
from .sequencer import sequence

MISSING_INPUT_MESSAGE = "Defina o ponto de partida e as paradas."

logger = logging.getLogger(__name__)


def _as_stop(value: str | Stop, stop_id: str) -> Stop:
    if isinstance(value, Stop):
        return value
    return Stop(stop_id=stop_id, address=value)


def _same_place(first: str, second: str) -> bool:
    return " ".join(first.split()).casefold() == " ".join(second.split()).casefold()


def _parse_mode(travel_mode: TravelMode | str) -> TravelMode:
    try:
        return TravelMode(travel_mode)
    except ValueError as exc:
        raise InvalidInput(f"Unsupported travel mode '{travel_mode}'. Use 'driving' or 'walking'.") from exc


class RouteOptimizer:
    """Geocode, sequence and expand a set of stops into a ``RouteResult``."""

    def __init__(
        self,
        geocoder: NominatimGeocoder | None = None,
        matrix_builder: MatrixBuilder | None = None,
        assembler: ItineraryAssembler | None = None,
        osrm_client: OSRMClient | None = None,
    ) -> None:
        if matrix_builder is None or assembler is None:
            osrm_client = osrm_client or OSRMClient()
        self.geocoder = geocoder or NominatimGeocoder()
        self.matrix_builder = matrix_builder or MatrixBuilder(osrm_client)
        self.assembler = assembler or ItineraryAssembler(osrm_client)

    async def _resolve_points(self, stops: Sequence[Stop]) -> list[ResolvedPoint]:
        return await gather_bounded(
            [lambda stop=stop: self.geocoder.resolve_stop(stop) for stop in stops],
            settings.geocode_max_parallel,
        )

    async def optimize(
        self,
        stop_addresses: Sequence[str | Stop],
        start_address: str | Stop,
        end_address: str | Stop | None = None,
        travel_mode: TravelMode | str = TravelMode.DRIVING,
        avoid_highways: bool = False,
        *,
        departure_time: datetime | None = None,
    ) -> RouteResult:
        stops = [
            _as_stop(value, f"stop-{index}")
            for index, value in enumerate(stop_addresses, start=1)
            if (value.address if isinstance(value, Stop) else value).strip()
        ]
        start = _as_stop(start_address, "start") if start_address is not None else None
        if start is None or not start.address.strip() or not stops:
            raise InvalidInput(MISSING_INPUT_MESSAGE)
        mode = _parse_mode(travel_mode)

        end = None
        if end_address is not None:
            end = _as_stop(end_address, "end")
            if not end.address.strip() or _same_place(end.address, start.address):
                end = None

        points_to_resolve = [start, *stops] + ([end] if end else [])
        started = time.monotonic()
        logger.info(
            "Optimizing %s stop(s), mode=%s, avoid_highways=%s, %s",
            len(stops),
            mode.value,
            avoid_highways,
            "open path" if end else "round trip",
        )

        points = await self._resolve_points(points_to_resolve)
        matrix = await self.matrix_builder.build_matrix(points, mode, avoid_highways)
        tour = sequence(matrix, 0, len(points) - 1 if end else None)
        result = await self.assembler.assemble(
            tour,
            points,
            mode,
            avoid_highways,
            departure_time=departure_time,
        )

        logger.info("Optimization finished in %.2fs: %s", time.monotonic() - started, result.summary)
        return result


async def optimize(
    stop_addresses: Sequence[str | Stop],
    start_address: str | Stop,
    end_address: str | Stop | None = None,
    travel_mode: TravelMode | str = TravelMode.DRIVING,
    avoid_highways: bool = False,
    *,
    departure_time: datetime | None = None,
) -> RouteResult:
    return await RouteOptimizer().optimize(
        stop_addresses,
        start_address,
        end_address,
        travel_mode,
        avoid_highways,
        departure_time=departure_time,
    )
