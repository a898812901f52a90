"""Minesweeper game simulation used to drive and benchmark the solver."""

import random
from collections import deque
from typing import Deque, Dict, FrozenSet, List, Optional, Set, Tuple

from .board import BoardView, SquareState
from .utils import Coord, get_neighborhoods

MINES_GENERATION_ALGORITHMS = ("safe_first_action_rule", "safe_neighborhood_rule")


class Minesweeper:
    """Minesweeper game engine with first-click safety and flagging."""

    def __init__(
        self,
        width: int,
        height: int,
        mines_count: int,
        mines_generation_algorithm: str = "safe_neighborhood_rule",
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Initialize a Minesweeper game engine.

        Args:
            width: Board width (number of columns), must be > 0.
            height: Board height (number of rows), must be > 0.
            mines_count: Total number of mines to place, must be >= 0.
            mines_generation_algorithm: Mine placement rule; one of
                {"safe_first_action_rule", "safe_neighborhood_rule"}.
            rng: Random source for mine placement; a fresh one by default.

        Raises:
            ValueError: If dimensions are invalid, the algorithm is
                unrecognized, or the mines cannot fit around a safe first move.
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive.")
        if mines_count < 0:
            raise ValueError("mines_count must be non-negative.")
        if mines_generation_algorithm not in MINES_GENERATION_ALGORITHMS:
            raise ValueError(
                'mines_generation_algorithm must be "safe_first_action_rule" '
                'or "safe_neighborhood_rule".'
            )

        safe_zone = 1 if mines_generation_algorithm == "safe_first_action_rule" else 9
        if mines_count > width * height - safe_zone:
            raise ValueError(
                f"Cannot place enough safe cells to satisfy {mines_generation_algorithm}."
            )

        self.width: int = width
        self.height: int = height
        self.mines_count: int = mines_count
        self.mines_generation_algorithm: str = mines_generation_algorithm
        self.rng: random.Random = rng if rng is not None else random.Random()

        # board[y][x]: "M" for a mine, else "0".."8" once mines are placed
        self.board: List[List[str]] = [
            [" " for _ in range(width)] for _ in range(height)
        ]
        self.board_blank: bool = True
        self.revealed: List[List[bool]] = [
            [False for _ in range(width)] for _ in range(height)
        ]
        self.flagged: Set[Coord] = set()
        self.first_move: bool = True

        self.unrevealed_count: int = width * height - mines_count
        self.game_over: bool = False

        self._neighborhoods: Dict[Coord, Tuple[Coord, ...]] = get_neighborhoods(
            width, height
        )

    @classmethod
    def from_rows(cls, *rows: str) -> "Minesweeper":
        """
        Build a game in progress from a literal board, one string per row.

        Legend: ' ' hidden safe square, '*' hidden mine, 'F' flagged mine,
        'f' flag on a safe square, '0'..'8' revealed square. Revealed numbers
        must match the mines around them.

        Raises:
            ValueError: On ragged rows, unknown symbols or wrong numbers.
        """
        if not rows or any(len(row) != len(rows[0]) for row in rows):
            raise ValueError("Rows must be non-empty and of equal length.")
        width, height = len(rows[0]), len(rows)

        mines = {
            (x, y)
            for y, row in enumerate(rows)
            for x, ch in enumerate(row)
            if ch in "*F"
        }
        game = cls(width, height, len(mines), "safe_first_action_rule")
        for mx, my in mines:
            game.board[my][mx] = "M"
        game.get_adjacent_mine_counts()
        game.board_blank = False
        game.first_move = False

        for y, row in enumerate(rows):
            for x, ch in enumerate(row):
                if ch.isdigit():
                    if game.board[y][x] != ch:
                        raise ValueError(
                            f"Square {(x, y)} shows {ch} but has {game.board[y][x]} mines around it."
                        )
                    game.revealed[y][x] = True
                    game.unrevealed_count -= 1
                elif ch in "Ff":
                    game.flagged.add((x, y))
                elif ch not in " *":
                    raise ValueError(f"Unknown symbol {ch!r} at {(x, y)}.")
        return game

    def neighbors(self, x: int, y: int) -> Tuple[Coord, ...]:
        """Return precomputed 8-neighborhood coordinates of a square."""
        return self._neighborhoods[(x, y)]

    def place_mines(self, first_x: int, first_y: int) -> None:
        """
        Place mines on the board (one-time), respecting the selected first-move safety rule.

        Args:
            first_x: X-coordinate of the first revealed cell.
            first_y: Y-coordinate of the first revealed cell.

        Raises:
            ValueError: If the board is not blank.
        """
        if not self.board_blank:
            raise ValueError("The board is not blank.")

        safe: Set[Coord] = {(first_x, first_y)}
        if self.mines_generation_algorithm == "safe_neighborhood_rule":
            # Safe zone = first click + its neighbors.
            safe.update(self.neighbors(first_x, first_y))

        eligible: List[Coord] = [
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if (x, y) not in safe
        ]

        # Sample mines uniformly without replacement.
        for mx, my in self.rng.sample(eligible, self.mines_count):
            self.board[my][mx] = "M"
        self.board_blank = False

    def get_adjacent_mine_counts(self) -> None:
        """Populate every non-mine cell with its adjacent mine count."""
        for y in range(self.height):
            for x in range(self.width):
                if self.board[y][x] == "M":
                    continue

                count = sum(
                    1 for nx, ny in self.neighbors(x, y) if self.board[ny][nx] == "M"
                )
                self.board[y][x] = str(count)

    @property
    def mines(self) -> FrozenSet[Coord]:
        return frozenset(
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if self.board[y][x] == "M"
        )

    def flood_fill(self, x: int, y: int) -> List[Tuple[int, int, str]]:
        """
        Reveal a connected region starting at (x, y) using Minesweeper flood fill rules.

        Flagged squares are never opened by the fill.

        Returns:
            A list of newly revealed cells as (x, y, value_str).
        """
        frontier: Deque[Coord] = deque([(x, y)])
        visited: Set[Coord] = {(x, y)}
        revealed_cells: List[Tuple[int, int, str]] = []

        while frontier:
            cx, cy = frontier.popleft()
            if self.revealed[cy][cx]:
                continue

            self.revealed[cy][cx] = True
            self.unrevealed_count -= 1
            revealed_cells.append((cx, cy, self.board[cy][cx]))

            if self.board[cy][cx] == "0":
                for nx, ny in self.neighbors(cx, cy):
                    if (nx, ny) in visited or self.revealed[ny][nx]:
                        continue
                    if (nx, ny) in self.flagged:
                        continue
                    visited.add((nx, ny))
                    frontier.append((nx, ny))

        return revealed_cells

    def _check_bounds(self, x: int, y: int) -> None:
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            raise ValueError("Cell coordinates are outside the board.")

    def reveal(self, x: int, y: int) -> Tuple[int, Dict[str, object]]:
        """
        Reveal a single cell and return a status code plus payload.

        Args:
            x: X-coordinate of the cell to reveal.
            y: Y-coordinate of the cell to reveal.

        Returns:
            Tuple of (status, payload) where status is:
                - -1: Mine hit (loss)
                - 0: Non-terminal reveal (or no-op on a revealed or flagged cell)
                - 1: Win (all safe cells revealed)

            Payload contains:
                - For status 0 or 1: {"revealed_cells": List[(x, y, value_str)]}
                - For status -1: {"revealed_cells_count": int, "all_mines": FrozenSet}

        Raises:
            ValueError: If coordinates are out of bounds.
        """
        self._check_bounds(x, y)

        if self.game_over or self.revealed[y][x] or (x, y) in self.flagged:
            return 0, {}

        if self.first_move:
            self.place_mines(x, y)
            self.get_adjacent_mine_counts()
            self.first_move = False

        if self.board[y][x] == "M":
            self.revealed[y][x] = True
            self.game_over = True

            revealed_cells_count = (
                self.width * self.height - self.mines_count
            ) - self.unrevealed_count
            return -1, {
                "revealed_cells_count": revealed_cells_count,
                "all_mines": self.mines,
            }

        revealed_cells = self.flood_fill(x, y)

        if self.unrevealed_count == 0:
            self.game_over = True
            return 1, {"revealed_cells": revealed_cells}

        return 0, {"revealed_cells": revealed_cells}

    def flag(self, x: int, y: int) -> bool:
        """
        Flag a hidden square. Returns False if it was already flagged.

        Raises:
            ValueError: If coordinates are out of bounds or the square is revealed.
        """
        self._check_bounds(x, y)
        if self.revealed[y][x]:
            raise ValueError(f"Square {(x, y)} is already revealed.")
        if (x, y) in self.flagged:
            return False
        self.flagged.add((x, y))
        return True

    def unflag(self, x: int, y: int) -> None:
        self._check_bounds(x, y)
        self.flagged.discard((x, y))

    def view(self) -> BoardView:
        """Snapshot what a player can see, for the solver to read."""
        states: List[List[SquareState]] = []
        counts: List[List[int]] = []
        for y in range(self.height):
            state_row: List[SquareState] = []
            count_row: List[int] = []
            for x in range(self.width):
                v = self.board[y][x]
                if self.revealed[y][x] and v == "M":
                    state_row.append(SquareState.MINE)
                    count_row.append(0)
                elif self.revealed[y][x]:
                    state_row.append(SquareState.PROBED)
                    count_row.append(int(v))
                elif (x, y) in self.flagged:
                    state_row.append(SquareState.FLAGGED)
                    count_row.append(0)
                else:
                    state_row.append(SquareState.UNKNOWN)
                    count_row.append(0)
            states.append(state_row)
            counts.append(count_row)
        return BoardView(self.width, self.height, self.mines_count, states, counts)

    # -------------------------------------------------------------------------
    # Display methods
    # -------------------------------------------------------------------------

    _ANSI_RESET = "\033[0m"
    _ANSI_COORD = "\033[96m"
    _ANSI_MINE = "\033[91m"

    def _c(self, s: str) -> str:
        """Wrap string in coordinate color."""
        return f"{self._ANSI_COORD}{s}{self._ANSI_RESET}"

    def _m(self, s: str) -> str:
        """Wrap string in mine color (red)."""
        return f"{self._ANSI_MINE}{s}{self._ANSI_RESET}"

    def format_board(self, reveal_all: bool = False, color: bool = True) -> str:
        """
        Render the board as a multi-line string for terminal display.

        Args:
            reveal_all: If True, show mines and all underlying values.
            color: If False, omit ANSI escape codes.

        Returns:
            A formatted multi-line string with coordinate labels and the board grid.
        """
        w, h = self.width, self.height
        c = self._c if color else str
        m = self._m if color else str

        def cell_str(x: int, y: int) -> str:
            if reveal_all or self.revealed[y][x]:
                v = self.board[y][x]
                if v == "M":
                    return m("M")
                return v
            if (x, y) in self.flagged:
                return "F"
            return "."

        header_cells = " ".join(f"{x:2d}" for x in range(w))
        out = [c("   ") + c(header_cells)]
        out.append(c("   " + "-" * (3 * w - 1)))

        for y in range(h):
            row_cells = " ".join(f" {cell_str(x, y)}" for x in range(w))
            out.append(c(f"{y:2d} ") + c("|") + row_cells)

        return "\n".join(out)
