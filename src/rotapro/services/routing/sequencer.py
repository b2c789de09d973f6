"""Stop ordering heuristics: nearest-neighbour construction and 2-opt improvement.

The tour always starts at the start index. When a distinct end index is
fixed it stays in the last position; otherwise the tour is a round trip
and the closing leg back to the start counts towards the cost.

All costs are integers (seconds or meters), so comparisons are exact and
a reversal is accepted only when it strictly lowers the total.
"""

from __future__ import annotations

import logging
from itertools import accumulate
from typing import Sequence

from ...config import settings
from .models import CostMatrix, CostMetric, Tour

logger = logging.getLogger(__name__)


def tour_cost(order: Sequence[int], matrix: CostMatrix, metric: CostMetric = "duration", round_trip: bool = False) -> int:
    total = sum(matrix.cost(a, b, metric) for a, b in zip(order, order[1:]))
    if round_trip and len(order) > 1:
        total += matrix.cost(order[-1], order[0], metric)
    return total


def nearest_neighbor_tour(
    matrix: CostMatrix,
    start_idx: int,
    end_idx: int | None = None,
    metric: CostMetric = "duration",
) -> list[int]:
    """Greedy walk from ``start_idx``; ties go to the lowest index."""
    fixed_end = end_idx if end_idx is not None and end_idx != start_idx else None
    unvisited = [i for i in range(len(matrix)) if i != start_idx and i != fixed_end]
    order = [start_idx]
    current = start_idx
    while unvisited:
        next_idx = min(unvisited, key=lambda j: (matrix.cost(current, j, metric), j))
        order.append(next_idx)
        unvisited.remove(next_idx)
        current = next_idx
    if fixed_end is not None:
        order.append(fixed_end)
    return order


def _find_improving_reversal(
    order: list[int],
    matrix: CostMatrix,
    metric: CostMetric,
    round_trip: bool,
) -> tuple[int, int] | None:
    """Return the first (i, j) whose segment reversal strictly lowers the cost."""
    n = len(order)
    last_movable = n - 1 if round_trip else n - 2
    if last_movable - 1 < 1:
        return None

    # Prefix sums of arc costs along the tour and against it, so reversing
    # [i..j] on an asymmetric matrix is evaluated in constant time.
    forward = [0, *accumulate(matrix.cost(order[k], order[k + 1], metric) for k in range(n - 1))]
    backward = [0, *accumulate(matrix.cost(order[k + 1], order[k], metric) for k in range(n - 1))]

    for i in range(1, last_movable):
        prev = order[i - 1]
        for j in range(i + 1, last_movable + 1):
            if j + 1 < n:
                nxt = order[j + 1]
            else:
                nxt = order[0]
            old = matrix.cost(prev, order[i], metric) + (forward[j] - forward[i]) + matrix.cost(order[j], nxt, metric)
            new = matrix.cost(prev, order[j], metric) + (backward[j] - backward[i]) + matrix.cost(order[i], nxt, metric)
            if new < old:
                return i, j
    return None


def two_opt(
    order: Sequence[int],
    matrix: CostMatrix,
    round_trip: bool,
    metric: CostMetric = "duration",
    max_iterations: int | None = None,
) -> tuple[list[int], bool]:
    """Improve ``order`` by segment reversals.

    Returns the improved order and whether the search converged before
    ``max_iterations`` accepted moves.
    """
    max_iterations = settings.two_opt_max_iterations if max_iterations is None else max_iterations
    best = list(order)
    accepted = 0
    while True:
        move = _find_improving_reversal(best, matrix, metric, round_trip)
        if move is None:
            return best, True
        if accepted >= max_iterations:
            logger.warning("2-opt stopped after %s accepted moves without converging", accepted)
            return best, False
        i, j = move
        best[i : j + 1] = reversed(best[i : j + 1])
        accepted += 1


def sequence(
    matrix: CostMatrix,
    start_idx: int,
    end_idx: int | None = None,
    *,
    metric: CostMetric | None = None,
    max_iterations: int | None = None,
) -> Tour:
    """Choose a visiting order over every matrix point."""
    size = len(matrix)
    if not 0 <= start_idx < size:
        raise ValueError(f"start index {start_idx} outside matrix of size {size}")
    if end_idx is not None and not 0 <= end_idx < size:
        raise ValueError(f"end index {end_idx} outside matrix of size {size}")

    metric = metric or settings.sequencing_metric
    round_trip = end_idx is None or end_idx == start_idx

    initial = nearest_neighbor_tour(matrix, start_idx, end_idx, metric)
    initial_cost = tour_cost(initial, matrix, metric, round_trip)
    improved, converged = two_opt(initial, matrix, round_trip, metric, max_iterations)
    final_cost = tour_cost(improved, matrix, metric, round_trip)

    logger.info(
        "Sequenced %s points (%s): nearest-neighbour cost %s, after 2-opt %s",
        size,
        "round trip" if round_trip else "open path",
        initial_cost,
        final_cost,
    )
    return Tour(order=tuple(improved), round_trip=round_trip, cost=final_cost, converged=converged)
