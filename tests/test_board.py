import pytest

from minesolver.board import BoardView, SquareState
from minesolver.utils import get_neighborhoods, popcount


def test_from_rows_round_trip():
    rows = ["12F", "  #", "000"]
    view = BoardView.from_rows(rows, total_mines=3)
    assert view.width == 3 and view.height == 3
    assert view.to_rows() == rows
    assert view.state((0, 0)) == SquareState.PROBED
    assert view.mine_count((1, 0)) == 2
    assert view.state((2, 0)) == SquareState.FLAGGED
    assert view.state((2, 1)) == SquareState.MINE
    assert view.state((0, 1)) == SquareState.UNKNOWN


def test_remaining_mines_discounts_flags_and_exposed_mines():
    view = BoardView.from_rows(["F #", "   "], total_mines=4)
    assert view.flagged_count == 1
    assert view.remaining_mines == 2


def test_squares_are_row_major():
    view = BoardView.from_rows(["1 ", "  "], total_mines=1)
    assert view.squares(SquareState.UNKNOWN) == ((1, 0), (0, 1), (1, 1))
    assert len(view.squares()) == 4


def test_neighbors_by_state():
    view = BoardView.from_rows(["1F", "  "], total_mines=1)
    assert set(view.neighbors((0, 0))) == {(1, 0), (0, 1), (1, 1)}
    assert view.neighbors((0, 0), SquareState.FLAGGED) == ((1, 0),)
    assert view.neighbors((1, 1), SquareState.PROBED) == ((0, 0),)


def test_mine_count_requires_probed_square():
    view = BoardView.from_rows(["1 "], total_mines=1)
    with pytest.raises(ValueError):
        view.mine_count((1, 0))


def test_with_flags_returns_new_view():
    view = BoardView.from_rows(["1 "], total_mines=1)
    flagged = view.with_flags([(1, 0)])
    assert flagged.state((1, 0)) == SquareState.FLAGGED
    assert view.state((1, 0)) == SquareState.UNKNOWN
    with pytest.raises(ValueError):
        view.with_flags([(0, 0)])


@pytest.mark.parametrize(
    "rows",
    [
        [],
        ["12", "1"],
        ["1?"],
    ],
)
def test_from_rows_rejects_bad_input(rows):
    with pytest.raises(ValueError):
        BoardView.from_rows(rows, total_mines=0)


def test_constructor_validation():
    with pytest.raises(ValueError):
        BoardView(0, 1, 0, [[]])
    with pytest.raises(ValueError):
        BoardView(1, 1, -1, [[SquareState.UNKNOWN]])
    with pytest.raises(ValueError):
        BoardView(1, 1, 0, [[SquareState.PROBED]], [[9]])


def test_neighborhoods_are_cached_and_clipped():
    nbrs = get_neighborhoods(3, 2)
    assert nbrs is get_neighborhoods(3, 2)
    assert len(nbrs[(0, 0)]) == 3
    assert len(nbrs[(1, 0)]) == 5


def test_popcount():
    assert popcount(0) == 0
    assert popcount(0b101101) == 4
    assert popcount(1 << 100) == 1
