from typing import Iterable, Tuple

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from minesolver.csp import ConstraintSystem  # noqa: E402


def make_system(num_variables: int, rules: Iterable[Tuple[int, Iterable[int]]]) -> ConstraintSystem:
    system = ConstraintSystem(num_variables)
    for target, scope in rules:
        system.add_rule(target, scope)
    return system


# (num_variables, rules, {mines: (total, counts)}) with hand-checked answers
KNOWN_SYSTEMS = {
    "unique": (
        3,
        [(2, [0, 1, 2]), (1, [0, 1]), (1, [0, 2])],
        {2: (1, [0, 1, 1])},
    ),
    "forced_chain": (
        5,
        [(2, [0, 1, 2]), (1, [3, 4]), (1, [1, 2, 3]), (2, [1, 3, 4])],
        {3: (1, [1, 1, 0, 0, 1])},
    ),
    "forced_middle": (
        5,
        [(3, [0, 1, 2, 3, 4]), (1, [0, 1]), (1, [3, 4])],
        {3: (4, [2, 2, 4, 2, 2])},
    ),
    "free_variable": (
        6,
        [(1, [0, 1, 2]), (2, [4, 5])],
        {3: (3, [1, 1, 1, 0, 3, 3]), 4: (3, [1, 1, 1, 3, 3, 3])},
    ),
}


@pytest.fixture(params=sorted(KNOWN_SYSTEMS))
def known_system(request):
    """(system, expected totals, expected counts) for each hand-checked system."""
    n, rules, answers = KNOWN_SYSTEMS[request.param]
    totals = [0] * (n + 1)
    counts = [[0] * n for _ in range(n + 1)]
    for m, (total, row) in answers.items():
        totals[m] = total
        counts[m] = row
    return make_system(n, rules), totals, counts


@pytest.fixture
def chain_system():
    """
    60 variables in shuffled order where every 6 consecutive positions hold
    exactly 3 mines: 20 solutions of 30 mines, each variable a mine in 10.
    """
    import random

    n = 60
    ids = list(range(n))
    random.Random(3).shuffle(ids)
    system = ConstraintSystem(n)
    for i in range(n - 5):
        system.add_rule(3, [ids[p] for p in range(i, i + 6)])
    return system


@pytest.fixture
def system_factory():
    return make_system
