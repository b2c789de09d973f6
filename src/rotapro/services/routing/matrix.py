"""Distance/duration matrix construction over batched OSRM table requests."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Sequence

from ...config import settings
from ...models.domain import ResolvedPoint, TravelMode
from .concurrency import gather_bounded
from .errors import MatrixFailure, ProviderError
from .models import CostMatrix
from .osrm_client import OSRMClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MatrixBatch:
    sources: range
    destinations: range

    @property
    def shared(self) -> bool:
        return self.sources == self.destinations

    def coordinate_indices(self) -> list[int]:
        """Global point indices sent with the request: sources first, then destinations."""
        if self.shared:
            return list(self.sources)
        return [*self.sources, *self.destinations]

    def local_sources(self) -> list[int]:
        return list(range(len(self.sources)))

    def local_destinations(self) -> list[int]:
        if self.shared:
            return list(range(len(self.sources)))
        offset = len(self.sources)
        return list(range(offset, offset + len(self.destinations)))


def plan_batches(count: int, max_coordinates: int) -> list[MatrixBatch]:
    """Split a ``count`` x ``count`` table into requests of at most ``max_coordinates`` points.

    Every ordered (origin, destination) pair is covered by exactly one batch.
    """
    if count <= 0:
        return []
    if count <= max_coordinates:
        return [MatrixBatch(range(count), range(count))]

    # Off-diagonal batches carry a source chunk plus a destination chunk.
    chunk_size = max(1, max_coordinates // 2)
    chunks = [range(start, min(start + chunk_size, count)) for start in range(0, count, chunk_size)]
    return [MatrixBatch(src, dst) for src in chunks for dst in chunks]


def stitch_batches(
    count: int,
    batches: Sequence[MatrixBatch],
    results: Sequence[dict],
) -> CostMatrix:
    """Map per-batch OSRM answers back to global indices and validate completeness."""
    durations: list[list[int | None]] = [[None] * count for _ in range(count)]
    distances: list[list[int | None]] = [[None] * count for _ in range(count)]

    for batch, result in zip(batches, results):
        try:
            result_durations = result["durations"]
            result_distances = result["distances"]
            for local_src, global_src in enumerate(batch.sources):
                for local_dst, global_dst in enumerate(batch.destinations):
                    duration = result_durations[local_src][local_dst]
                    distance = result_distances[local_src][local_dst]
                    durations[global_src][global_dst] = None if duration is None else int(round(duration))
                    distances[global_src][global_dst] = None if distance is None else int(round(distance))
        except (KeyError, IndexError, TypeError) as exc:
            raise MatrixFailure(
                f"malformed table response for batch [{batch.sources.start}:{batch.sources.stop}]"
                f" -> [{batch.destinations.start}:{batch.destinations.stop}]"
            ) from exc

    for i in range(count):
        for j in range(count):
            if i != j and (durations[i][j] is None or distances[i][j] is None):
                raise MatrixFailure(f"no route found from point {i} to point {j}")
    return CostMatrix(distances=distances, durations=durations)


class MatrixBuilder:
    def __init__(
        self,
        client: OSRMClient | None = None,
        max_coordinates_per_request: int | None = None,
        max_parallel_requests: int | None = None,
    ) -> None:
        self.client = client or OSRMClient()
        self.max_coordinates_per_request = max_coordinates_per_request or settings.osrm_max_coordinates_per_request
        self.max_parallel_requests = max_parallel_requests or settings.provider_max_parallel_requests

    async def _fetch_batch(
        self,
        coordinates: Sequence[tuple[float, float]],
        batch: MatrixBatch,
        mode: TravelMode,
        avoid_highways: bool,
    ) -> dict:
        batch_coords = [coordinates[index] for index in batch.coordinate_indices()]
        try:
            return await self.client.table(
                batch_coords,
                mode=mode,
                avoid_highways=avoid_highways,
                sources=batch.local_sources(),
                destinations=batch.local_destinations(),
            )
        except ProviderError as exc:
            logger.warning(
                "Matrix batch [%s:%s] -> [%s:%s] failed: %s",
                batch.sources.start,
                batch.sources.stop,
                batch.destinations.start,
                batch.destinations.stop,
                exc,
            )
            raise MatrixFailure(exc.message) from exc

    async def build_matrix(
        self,
        points: Sequence[ResolvedPoint],
        mode: TravelMode,
        avoid_highways: bool = False,
    ) -> CostMatrix:
        count = len(points)
        if count < 2:
            return CostMatrix(distances=[[0] * count for _ in range(count)], durations=[[0] * count for _ in range(count)])

        start_time = time.monotonic()
        coordinates = [point.coordinate for point in points]
        batches = plan_batches(count, self.max_coordinates_per_request)
        logger.info(
            "Building %sx%s cost matrix with %s table request(s) (max %s concurrent)",
            count,
            count,
            len(batches),
            self.max_parallel_requests,
        )
        results = await gather_bounded(
            [
                lambda batch=batch: self._fetch_batch(coordinates, batch, mode, avoid_highways)
                for batch in batches
            ],
            self.max_parallel_requests,
        )
        matrix = stitch_batches(count, batches, results)
        logger.info("Cost matrix completed in %.2fs", time.monotonic() - start_time)
        return matrix
