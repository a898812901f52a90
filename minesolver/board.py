"""Read-only snapshot of what the player can see on a Minesweeper board."""

import enum
from typing import Dict, List, Optional, Sequence, Tuple

from .utils import Coord, get_neighborhoods


class SquareState(enum.Enum):
    """Visible state of a single square."""

    UNKNOWN = "unknown"
    FLAGGED = "flagged"
    PROBED = "probed"
    MINE = "mine"  # exposed mine (the game is lost)


class BoardView:
    """
    Immutable player-side view of a board.

    The solver only ever reads from a view; the game simulation hands out a
    fresh snapshot for every solve so nothing observed mid-solve can change.
    """

    def __init__(
        self,
        width: int,
        height: int,
        total_mines: int,
        states: Sequence[Sequence[SquareState]],
        mine_counts: Optional[Sequence[Sequence[int]]] = None,
    ) -> None:
        """
        Build a snapshot.

        Args:
            width: Board width (number of columns), must be > 0.
            height: Board height (number of rows), must be > 0.
            total_mines: Number of mines on the whole board, must be >= 0.
            states: states[y][x] for every square.
            mine_counts: mine_counts[y][x], the revealed number of a PROBED
                square. Ignored for other states. Defaults to all zeros.

        Raises:
            ValueError: If the grids do not match the dimensions, or a
                revealed number is outside 0..8.
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if total_mines < 0:
            raise ValueError("total_mines must be non-negative.")
        if len(states) != height or any(len(row) != width for row in states):
            raise ValueError("states must be a height x width grid.")
        if mine_counts is None:
            mine_counts = [[0] * width for _ in range(height)]
        if len(mine_counts) != height or any(len(row) != width for row in mine_counts):
            raise ValueError("mine_counts must be a height x width grid.")

        self.width: int = width
        self.height: int = height
        self.total_mines: int = total_mines
        self._states: Tuple[Tuple[SquareState, ...], ...] = tuple(
            tuple(row) for row in states
        )
        self._counts: Tuple[Tuple[int, ...], ...] = tuple(
            tuple(row) for row in mine_counts
        )
        for y in range(height):
            for x in range(width):
                if self._states[y][x] == SquareState.PROBED and not (
                    0 <= self._counts[y][x] <= 8
                ):
                    raise ValueError(f"Revealed count at {(x, y)} must be in 0..8.")

        self._neighborhoods = get_neighborhoods(width, height)
        self._by_state: Dict[SquareState, Tuple[Coord, ...]] = {}

    @classmethod
    def from_rows(cls, rows: Sequence[str], total_mines: int) -> "BoardView":
        """
        Parse a view from strings, one per row, in the to_rows() legend.

        The numbers are taken as given; nothing checks that they are
        consistent with each other, which makes this handy for crafting
        contradictory positions.

        Raises:
            ValueError: On ragged rows or an unknown symbol.
        """
        if not rows:
            raise ValueError("At least one row is required.")
        symbols = {
            " ": SquareState.UNKNOWN,
            "F": SquareState.FLAGGED,
            "#": SquareState.MINE,
        }
        states: List[List[SquareState]] = []
        counts: List[List[int]] = []
        for y, row in enumerate(rows):
            if len(row) != len(rows[0]):
                raise ValueError("All rows must have the same length.")
            state_row: List[SquareState] = []
            count_row: List[int] = []
            for x, ch in enumerate(row):
                if ch.isdigit():
                    state_row.append(SquareState.PROBED)
                    count_row.append(int(ch))
                elif ch in symbols:
                    state_row.append(symbols[ch])
                    count_row.append(0)
                else:
                    raise ValueError(f"Unknown symbol {ch!r} at {(x, y)}.")
            states.append(state_row)
            counts.append(count_row)
        return cls(len(rows[0]), len(rows), total_mines, states, counts)

    def __repr__(self) -> str:
        return (
            f"BoardView({self.width}x{self.height}, total_mines={self.total_mines}, "
            f"flagged={self.flagged_count})"
        )

    def state(self, coord: Coord) -> SquareState:
        """Return the visible state of a square."""
        x, y = coord
        return self._states[y][x]

    def mine_count(self, coord: Coord) -> int:
        """
        Return the number displayed on a probed square.

        Raises:
            ValueError: If the square is not PROBED.
        """
        x, y = coord
        if self._states[y][x] != SquareState.PROBED:
            raise ValueError(f"Square {coord} is not probed.")
        return self._counts[y][x]

    def neighbors(
        self, coord: Coord, state: Optional[SquareState] = None
    ) -> Tuple[Coord, ...]:
        """Neighbors of a square, optionally restricted to one state."""
        nbrs = self._neighborhoods[coord]
        if state is None:
            return nbrs
        return tuple(c for c in nbrs if self._states[c[1]][c[0]] == state)

    def squares(self, state: Optional[SquareState] = None) -> Tuple[Coord, ...]:
        """All squares in row-major order, optionally restricted to one state."""
        if state is None:
            return tuple((x, y) for y in range(self.height) for x in range(self.width))

        cached = self._by_state.get(state)
        if cached is None:
            cached = tuple(
                (x, y)
                for y in range(self.height)
                for x in range(self.width)
                if self._states[y][x] == state
            )
            self._by_state[state] = cached
        return cached

    @property
    def flagged_count(self) -> int:
        return len(self.squares(SquareState.FLAGGED))

    @property
    def remaining_mines(self) -> int:
        """Mines not accounted for by flags or exposed mines."""
        return self.total_mines - self.flagged_count - len(self.squares(SquareState.MINE))

    def with_flags(self, coords: Sequence[Coord]) -> "BoardView":
        """Return a new view with the given Unknown squares flagged."""
        states: List[List[SquareState]] = [list(row) for row in self._states]
        for x, y in coords:
            if states[y][x] != SquareState.UNKNOWN:
                raise ValueError(f"Square {(x, y)} is not unknown.")
            states[y][x] = SquareState.FLAGGED
        return BoardView(
            self.width, self.height, self.total_mines, states, self._counts
        )

    def to_rows(self) -> List[str]:
        """
        Render the view one string per row.

        ' ' unknown, 'F' flagged, '#' exposed mine, '0'..'8' probed.
        """
        symbols = {
            SquareState.UNKNOWN: " ",
            SquareState.FLAGGED: "F",
            SquareState.MINE: "#",
        }
        rows: List[str] = []
        for y in range(self.height):
            row = []
            for x in range(self.width):
                s = self._states[y][x]
                row.append(str(self._counts[y][x]) if s == SquareState.PROBED else symbols[s])
            rows.append("".join(row))
        return rows
