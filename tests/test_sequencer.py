import random

import pytest

from rotapro.services.routing.models import CostMatrix
from rotapro.services.routing.sequencer import nearest_neighbor_tour, sequence, tour_cost, two_opt


def _matrix(durations, distances=None) -> CostMatrix:
    return CostMatrix(distances=distances or durations, durations=durations)


def _random_matrix(size: int, seed: int) -> CostMatrix:
    rng = random.Random(seed)
    durations = [[0 if i == j else rng.randint(1, 500) for j in range(size)] for i in range(size)]
    distances = [[0 if i == j else rng.randint(1, 5000) for j in range(size)] for i in range(size)]
    return CostMatrix(distances=distances, durations=durations)


def _line_matrix(size: int) -> CostMatrix:
    return _matrix([[abs(i - j) for j in range(size)] for i in range(size)])


def _no_reversal_improves(order, matrix, round_trip) -> bool:
    current = tour_cost(order, matrix, round_trip=round_trip)
    last_movable = len(order) - 1 if round_trip else len(order) - 2
    for i in range(1, last_movable):
        for j in range(i + 1, last_movable + 1):
            candidate = order[:i] + order[i : j + 1][::-1] + order[j + 1 :]
            if tour_cost(candidate, matrix, round_trip=round_trip) < current:
                return False
    return True


@pytest.mark.parametrize("seed", range(5))
def test_round_trip_tour_is_a_local_optimum_permutation(seed):
    matrix = _random_matrix(9, seed)

    tour = sequence(matrix, 0)

    assert tour.round_trip is True
    assert tour.order[0] == 0
    assert sorted(tour.order) == list(range(9))
    assert tour.cost == tour_cost(tour.order, matrix, round_trip=True)
    assert tour.cost <= tour_cost(nearest_neighbor_tour(matrix, 0), matrix, round_trip=True)
    assert _no_reversal_improves(list(tour.order), matrix, round_trip=True)


@pytest.mark.parametrize("seed", range(5))
def test_open_path_keeps_fixed_end_last(seed):
    matrix = _random_matrix(8, seed)

    tour = sequence(matrix, 0, 7)

    assert tour.round_trip is False
    assert tour.order[0] == 0
    assert tour.order[-1] == 7
    assert sorted(tour.order) == list(range(8))
    assert _no_reversal_improves(list(tour.order), matrix, round_trip=False)


def test_sequence_is_deterministic():
    matrix = _random_matrix(12, 42)

    assert sequence(matrix, 0) == sequence(matrix, 0)


def test_nearest_neighbour_ties_go_to_lowest_index():
    matrix = _matrix(
        [
            [0, 5, 5, 9],
            [5, 0, 1, 1],
            [5, 1, 0, 1],
            [9, 1, 1, 0],
        ]
    )

    assert nearest_neighbor_tour(matrix, 0) == [0, 1, 2, 3]


def test_two_opt_untangles_crossed_segment():
    matrix = _line_matrix(5)

    order, converged = two_opt([0, 2, 1, 3, 4], matrix, round_trip=False)

    assert order == [0, 1, 2, 3, 4]
    assert converged is True
    assert tour_cost(order, matrix) == 4


def test_two_opt_reports_when_iteration_cap_is_hit():
    matrix = _line_matrix(5)

    order, converged = two_opt([0, 2, 1, 3, 4], matrix, round_trip=False, max_iterations=0)

    assert order == [0, 2, 1, 3, 4]
    assert converged is False


def test_sequence_uses_selected_metric():
    # Durations favour the loop 0 -> 2 -> 1, distances the loop 0 -> 1 -> 2.
    durations = [[0, 10, 1], [1, 0, 10], [10, 1, 0]]
    distances = [[0, 1, 10], [10, 0, 1], [1, 10, 0]]
    matrix = CostMatrix(distances=distances, durations=durations)

    by_duration = sequence(matrix, 0, metric="duration")
    by_distance = sequence(matrix, 0, metric="distance")

    assert by_duration.order == (0, 2, 1)
    assert by_duration.cost == 3
    assert by_distance.order == (0, 1, 2)
    assert by_distance.cost == 3


def test_end_equal_to_start_is_a_round_trip():
    matrix = _line_matrix(4)

    tour = sequence(matrix, 0, 0)

    assert tour.round_trip is True
    assert tour.cost == 6


def test_trivial_matrices():
    single = sequence(_matrix([[0]]), 0)
    assert single.order == (0,)
    assert single.cost == 0
    assert single.leg_pairs() == []

    pair = sequence(_matrix([[0, 3], [4, 0]]), 0)
    assert pair.order == (0, 1)
    assert pair.cost == 7
    assert pair.leg_pairs() == [(0, 1), (1, 0)]


def test_sequence_rejects_out_of_range_indices():
    matrix = _line_matrix(3)

    with pytest.raises(ValueError):
        sequence(matrix, 3)
    with pytest.raises(ValueError):
        sequence(matrix, 0, 5)


def test_cost_matrix_rejects_missing_cells():
    with pytest.raises(ValueError):
        CostMatrix(distances=[[0, None], [1, 0]], durations=[[0, 1], [1, 0]])
    with pytest.raises(ValueError):
        CostMatrix(distances=[[0, 1]], durations=[[0, 1], [1, 0]])
