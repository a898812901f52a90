import pytest

from minesolver.board import BoardView, SquareState
from minesolver.errors import ContradictionError
from minesolver.grouping import build_constraints, partition_groups


def test_one_one_pattern_forms_one_group():
    view = BoardView.from_rows(["12F", "   "], total_mines=2)
    groups, unconstrained = partition_groups(view)
    assert unconstrained == []
    assert len(groups) == 1
    assert sorted(groups[0]) == [(0, 1), (1, 1), (2, 1)]


def test_separate_groups_and_unconstrained_squares():
    view = BoardView.from_rows([" 1   1 "], total_mines=2)
    groups, unconstrained = partition_groups(view)
    assert groups == [[(0, 0), (2, 0)], [(4, 0), (6, 0)]]
    assert unconstrained == [(3, 0)]


def test_groups_are_disjoint_and_cover_unknown_squares():
    view = BoardView.from_rows(
        [
            "  1    ",
            " 12  1 ",
            "       ",
            "2   0  ",
        ],
        total_mines=6,
    )
    groups, unconstrained = partition_groups(view)
    seen = [c for g in groups for c in g] + unconstrained
    assert len(seen) == len(set(seen))
    assert set(seen) == set(view.squares(SquareState.UNKNOWN))


def test_untouched_board_has_no_groups():
    view = BoardView.from_rows(["   ", "   "], total_mines=1)
    groups, unconstrained = partition_groups(view)
    assert groups == []
    assert len(unconstrained) == 6


def test_build_constraints_discounts_flags():
    view = BoardView.from_rows(["12F", "   "], total_mines=2)
    group = partition_groups(view)[0][0]
    system = build_constraints(view, group)
    index = {c: i for i, c in enumerate(group)}

    assert system.num_variables == 3
    rules = sorted(
        (rule.target, sorted(rule.scope)) for rule in system.rules
    )
    a, b, c = index[(0, 1)], index[(1, 1)], index[(2, 1)]
    assert rules == sorted([(1, sorted([a, b])), (1, sorted([a, b, c]))])


def test_each_number_yields_one_rule():
    view = BoardView.from_rows([" 1 1 "], total_mines=2)
    groups, _ = partition_groups(view)
    assert len(groups) == 1
    assert len(build_constraints(view, groups[0]).rules) == 2


@pytest.mark.parametrize(
    "rows,total_mines",
    [
        (["3 "], 3),  # needs more mines than neighbours
        (["1F", "F "], 2),  # flags already exceed the number
    ],
)
def test_degenerate_rules_raise(rows, total_mines):
    view = BoardView.from_rows(rows, total_mines)
    groups, _ = partition_groups(view)
    with pytest.raises(ContradictionError):
        build_constraints(view, groups[0])
