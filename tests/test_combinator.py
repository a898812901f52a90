from fractions import Fraction

import numpy as np
import pytest

from minesolver.board import BoardView
from minesolver.combinator import Classification, GlobalCombinator, classify
from minesolver.csp import GroupResult
from minesolver.errors import ContradictionError
from minesolver.solver import ExactSolver

# Group of squares a, b, c with a + b = 1 and b + c = 1:
# one solution with 1 mine (b), one with 2 mines (a and c).
PAIR_RESULT = GroupResult([0, 1, 1, 0], [[0, 0, 0], [0, 1, 0], [1, 0, 1], [0, 0, 0]])


def test_classify():
    assert classify(Fraction(0)) == Classification.SAFE
    assert classify(Fraction(1)) == Classification.MINE
    assert classify(Fraction(1, 3)) == Classification.UNCERTAIN


def test_disjoint_groups_convolve():
    combinator = GlobalCombinator([PAIR_RESULT, PAIR_RESULT], num_unconstrained=2, remaining_mines=4)
    assert [combinator.combo_of_groups(None, k) for k in range(6)] == [0, 0, 1, 2, 1, 0]
    assert combinator.combo_of_groups(0, 1) == 1
    assert combinator.combo_of_groups(0, 3) == 0
    assert combinator.combo_of_groups(None, -1) == 0


def test_combos_by_mine_count_adds_unconstrained_squares():
    combinator = GlobalCombinator([PAIR_RESULT], num_unconstrained=2, remaining_mines=3)
    # 1 group mine + 2 free, or 2 group mines + 1 free (two ways)
    assert combinator.combos_by_mine_count(None, 3) == 1 + 2
    assert combinator.combos_by_mine_count(None, 3, unconstrained=0) == 0
    assert combinator.combos_by_mine_count(None, -1) == 0
    assert combinator.combos_by_mine_count(None, 1, unconstrained=-1) == 0


def test_binomials_are_memoised():
    combinator = GlobalCombinator([], num_unconstrained=10, remaining_mines=3)
    assert combinator.binomial(10, 3) == 120
    assert combinator.binomial(3, 5) == 0
    assert combinator.binomial(3, -1) == 0
    assert (10, 3) in combinator._binomials


def test_insufficient_mine_budget_shifts_probabilities():
    view = BoardView.from_rows([" 1 1 F 1 1 F  "], total_mines=5)
    distribution, _ = ExactSolver().compute_distribution(view)
    p = distribution.probabilities

    assert p[(2, 0)] == p[(8, 0)] == Fraction(3, 4)
    for x in (0, 4, 6, 10, 12, 13):
        assert p[(x, 0)] == Fraction(1, 4)
    assert distribution.unconstrained_probability == Fraction(1, 4)
    assert distribution.unconstrained == [(12, 0), (13, 0)]
    assert distribution.total_configurations == 4
    assert distribution.certain_safe == []
    assert distribution.certain_mines == []


def test_only_unconstrained_squares():
    combinator = GlobalCombinator([], num_unconstrained=4, remaining_mines=2)
    distribution = combinator.distribute(2, 2, [(0, 0), (1, 0), (0, 1), (1, 1)])
    assert set(distribution.probabilities.values()) == {Fraction(1, 2)}
    assert distribution.total_configurations == 6


def test_unconstrained_squares_can_be_certain():
    combinator = GlobalCombinator([PAIR_RESULT], num_unconstrained=1, remaining_mines=1)
    prob, _ = combinator.unconstrained_probability()
    assert prob == 0
    probs, total = combinator.group_probabilities(0)
    assert probs == [0, 1, 0]
    assert total == 1


def test_mine_budget_that_cannot_be_met():
    combinator = GlobalCombinator([PAIR_RESULT], num_unconstrained=0, remaining_mines=3)
    with pytest.raises(ContradictionError):
        combinator.group_probabilities(0)

    combinator = GlobalCombinator([], num_unconstrained=2, remaining_mines=3)
    with pytest.raises(ContradictionError):
        combinator.unconstrained_probability()

    combinator = GlobalCombinator([], num_unconstrained=0, remaining_mines=1)
    with pytest.raises(ContradictionError):
        combinator.distribute(1, 1, [])


def test_probabilities_are_proper_fractions():
    view = BoardView.from_rows(
        [
            "  1    ",
            " 12  1 ",
            "       ",
            "2      ",
        ],
        total_mines=7,
    )
    distribution, _ = ExactSolver().compute_distribution(view)
    for p in distribution.probabilities.values():
        assert 0 <= p.numerator <= p.denominator
    for result in distribution.groups:
        result.check_invariants()


def test_probability_grid():
    view = BoardView.from_rows(["12F", "   "], total_mines=2)
    distribution, _ = ExactSolver().compute_distribution(view)
    grid = distribution.probability_grid()
    assert grid.shape == (2, 3)
    assert np.isnan(grid[0]).all()
    assert grid[1].tolist() == [0.5, 0.5, 0.0]
